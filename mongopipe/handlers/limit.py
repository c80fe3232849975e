"""
### Skip & Limit Operations
Slicing corresponds to the `$skip` and `$limit` stages of an aggregation pipeline.

```python
# Third page, 100 items per page
User.pipeline_query(executor).skip(200).limit(100)
```

Values: a number, or a `None` that removes it.
Strings like `'50'` are converted to numbers.

No matter when `skip()` and `limit()` are called, they always go last in the pipeline:
`$skip` first, then `$limit`. The last call wins.

`first()` and `paginate()` use their own values, but only for the duration of the call:
the values stored in the query are not changed.
"""

from .base import PipelineHandlerBase
from ..exc import InvalidQueryError
from ..stages import Stage


class MongoLimit(PipelineHandlerBase):
    """ MongoDB skip and limit

        Handles two methods:
        * skip(): None, or int >= 0
        * limit(): None, or int > 0
    """

    handler_name = 'limit'
    method_name = 'limit'

    def __init__(self, entity, max_items=None):
        """ Init a limit

        :param entity: Entity name
        :param max_items: The maximum number of items that can be loaded with this query.
            The user can never go any higher than that, and this value is forced onto every query.
        """
        super(MongoLimit, self).__init__(entity)

        # Config
        if max_items is not None and (isinstance(max_items, bool) or not isinstance(max_items, int) or max_items < 1):
            raise ValueError('max_items must be a positive integer, or None; {!r} given'.format(max_items))
        self.max_items = max_items

        # On input
        self.skip = None
        self.limit = None

    def input_skip(self, skip):
        self.skip = self._coerce('skip', skip, minimum=0)
        return self

    def input_limit(self, limit):
        self.limit = self._coerce('limit', limit, minimum=1)
        return self

    @staticmethod
    def _coerce(method_name, value, minimum):
        """ Convert a value to int, make sure it's within range

            :raises InvalidQueryError
        """
        if value is None:
            return None

        # int() would truncate 2.7 to 2
        if isinstance(value, float) and not value.is_integer():
            raise InvalidQueryError('{}(): expects a whole number; {!r} given'.format(method_name, value))

        try:
            value = int(value)
        except (TypeError, ValueError):
            raise InvalidQueryError('{}(): expects an integer or None; {!r} given'.format(method_name, value))

        if value < minimum:
            raise InvalidQueryError('{}(): must be at least {}; {} given'.format(method_name, minimum, value))
        return value

    def cap(self, limit):
        """ Apply `max_items` to a limit

            :param limit: int, or None for no limit
            :return: int, or None
        """
        if self.max_items:
            return min(self.max_items, limit or self.max_items)
        return limit

    def compile_stages(self, skip=None, limit=None):
        """ Compile $skip and $limit, in this order

            :param skip: Override the stored skip value
            :param limit: Override the stored limit value
        """
        skip = self.skip if skip is None else skip
        limit = self.cap(self.limit if limit is None else limit)

        stages = []
        if skip is not None:
            stages.append(Stage.skip(skip))
        if limit is not None:
            stages.append(Stage.limit(limit))
        return stages
