"""
### Add Fields Operation
Computed fields correspond to the `$addFields` stage of an aggregation pipeline.

```python
Product.pipeline_query(executor) \
    .add_fields({'inventoryValue': {'$multiply': ['$price', '$stock']}}) \
    .where('inventoryValue', '>', 10000)
```

Expressions are given to MongoDB as they are.
A computed field can be used by any operation that comes after it: `where()`, `order_by()`, `select()`.
"""

from typing import Mapping

from .base import PipelineHandlerBase
from ..stages import Stage


class MongoAddFields(PipelineHandlerBase):
    """ MongoDB computed fields

        * { field: expression }
    """

    handler_name = 'add_fields'
    method_name = 'add_fields'

    def input(self, fields):
        """ Compile an $addFields stage

            :type fields: dict
            :rtype: dict
        """
        if not isinstance(fields, Mapping):
            raise self.invalid_input('expects a non-null mapping; {} provided'.format(type(fields)))
        return Stage.add_fields(fields)
