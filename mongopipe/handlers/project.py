"""
### Select Operation
Projection corresponds to the `$project` stage of an aggregation pipeline.

It lets you pick the fields to return, or the fields to leave out:

```python
# Only return these fields
User.pipeline_query(executor).select('name email')
User.pipeline_query(executor).select(['name', 'email', 'role.name'])

# Return everything but these fields
User.pipeline_query(executor).select('-password -token')
```

#### Syntax

* String syntax: field names separated by whitespace
* Array syntax: a list of field names

A field name prefixed with a `-` is excluded; otherwise, it's included.

Note that MongoDB does not allow to mix inclusions and exclusions, with the only exception of `_id`.

#### Rules

* The projection is always applied at the very end of the pipeline,
  no matter when `select()` was called: joined relationships and computed fields can be selected.
* Every `select()` call replaces the previous projection.
"""

from .base import PipelineHandlerBase
from ..stages import Stage


class MongoProject(PipelineHandlerBase):
    """ MongoDB projection

        * None: no projection
        * 'a b -c': whitespace-separated field names
        * ['a', 'b', '-c']: field names
    """

    handler_name = 'project'
    method_name = 'select'

    def __init__(self, entity):
        super(MongoProject, self).__init__(entity)

        # On input
        #: dict { field: 1 | 0 }, or None
        self.projection = None

    def input(self, fields):
        """ Replace the projection

            :type fields: str | list[str] | tuple[str]
            :raises InvalidQueryError: invalid input
        """
        self.projection = self._input_process(fields)
        return self

    def _input_process(self, fields):
        """ input(): validate, convert to a dict """
        # String syntax
        if isinstance(fields, str):
            fields = fields.split()

        # Array syntax
        if not isinstance(fields, (list, tuple)):
            raise self.invalid_input('expects a string or an array of field paths; {} provided'
                                     .format(type(fields)))

        # Validate items
        if not all(isinstance(f, str) for f in fields):
            raise self.invalid_input('expects fields as strings')

        # Convert: a minus means exclusion
        projection = {}
        for f in fields:
            name = f[1:] if f.startswith('-') else f
            if not name:
                raise self.invalid_input('empty field name; {!r} given'.format(f))
            projection[name] = 0 if f.startswith('-') else 1
        return projection

    def is_input_empty(self):
        """ Test whether there's a projection at all """
        return self.projection is None

    def compile_stages(self):
        if self.is_input_empty():
            return []
        return [Stage.project(self.projection)]
