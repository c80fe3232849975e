"""
### Order By Operation

Sorting corresponds to the `$sort` stage of an aggregation pipeline.

An example of a sort operation would look like this:

```python
# sort by age, descending;
# then sort by first name, alphabetically
User.pipeline_query(executor).order_by('-age first_name')
```

#### Syntax

* String syntax.

    List of field names, optionally prefixed by a `-` for descending order, separated by whitespace.

    ```python
    .order_by('a -b c')  # -> a ASC, b DESC, c ASC
    ```

* Array syntax.

    ```python
    .order_by(['a', '-b', 'c'])
    ```

* Object syntax.

    Keys are field names, values are directions: `1`, `-1`, `'asc'`, `'desc'`.
    Python dicts preserve the ordering of their keys, so it's safe to use.

    ```python
    .order_by({'a': 1, 'b': 'desc'})
    ```

* Field and direction.

    ```python
    .order_by('created_at', 'desc')
    ```

#### Merging

Consecutive `order_by()` calls produce a single `$sort` stage:

```python
.order_by('name').order_by('-age')  # -> {'$sort': {'name': 1, 'age': -1}}
```

But when anything else comes in between, e.g. a `where()`, there will be two `$sort` stages,
because a sort that's done before a filter is a different thing than a sort that's done after it.
"""

from .base import PipelineHandlerBase
from ..stages import Stage


class MongoSort(PipelineHandlerBase):
    """ MongoDB sorting

        * 'a -b c'  - string of field names, '-' prefix for DESC
        * [ 'a', '-b', 'c' ]  - array of strings
        * { a: 1, b: 'desc' }  - an object of { field: 1 | -1 | 'asc' | 'desc' }
        * 'a', 'desc'  - a field and its direction
    """

    handler_name = 'sort'
    method_name = 'order_by'

    # Directions, and how they're written
    _directions = {
        1: +1,
        -1: -1,
        'asc': +1,
        'desc': -1,
    }

    def input(self, *args):
        """ Compile a sort spec

            :rtype: dict
            :raises InvalidQueryError
        """
        if not args:
            raise self.invalid_input('requires at least one field')
        elif len(args) == 2:
            return self._input_field_direction(*args)
        elif len(args) > 2:
            raise self.invalid_input('expects at most 2 arguments; {} given'.format(len(args)))

        spec, = args

        # String syntax
        if isinstance(spec, str):
            spec = spec.split()

        # Array syntax
        if isinstance(spec, (list, tuple)):
            if not all(isinstance(v, str) for v in spec):
                raise self.invalid_input('array values must be strings')
            sort_spec = {}
            for v in spec:
                field = v[1:] if v.startswith('-') else v
                if not field:
                    raise self.invalid_input('empty field name; {!r} given'.format(v))
                sort_spec[field] = -1 if v.startswith('-') else +1
            return sort_spec

        # Object syntax
        if isinstance(spec, dict):
            sort_spec = {}
            for field, d in spec.items():
                if not isinstance(field, str) or not field:
                    raise self.invalid_input('empty field name; {!r} given'.format(field))
                direction = self._direction(d)
                if direction is None:
                    raise self.invalid_input("object values must be 1, -1, 'asc', or 'desc'; {!r} given".format(d))
                sort_spec[field] = direction
            return sort_spec

        raise self.invalid_input('expects string, array, or object; {} provided'.format(type(spec)))

    def _input_field_direction(self, field, direction):
        """ order_by(field, direction) """
        if not isinstance(field, str) or not field.lstrip('-'):
            raise self.invalid_input('field name must be a non-empty string; {!r} given'.format(field))
        d = self._direction(direction)
        if d is None:
            raise self.invalid_input("direction must be 1, -1, 'asc', or 'desc'; {!r} given".format(direction))
        return {field: d}

    @classmethod
    def _direction(cls, d):
        """ Get +1 | -1 for a direction, or None """
        # True == 1 and 1.0 == 1, but they're not directions
        if isinstance(d, bool) or not isinstance(d, (int, str)):
            return None
        return cls._directions.get(d)

    def merge_into(self, stages, sort_spec):
        """ Add the sort spec to a list of stages

            If the last stage is a $sort, it absorbs the new fields:
            a field that's sorted by again takes the new direction, new fields go last.
            Otherwise, a new $sort stage is appended.

            :param stages: List of stages; modified in-place
            :param sort_spec: { field: +1 | -1 }
        """
        if stages and Stage.is_a(stages[-1], Stage.SORT):
            # Stages are shared between copies of a query: never modify them in place
            stages[-1] = Stage.sort({**stages[-1][Stage.SORT], **sort_spec})
        else:
            stages.append(Stage.sort(sort_spec))
        return stages
