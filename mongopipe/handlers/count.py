"""
### Count Operation
Counting corresponds to the `$count` stage of an aggregation pipeline.

Simply, return the number of documents, without returning the documents themselves.

```python
await User.pipeline_query(executor).where('age', '>=', 18).count()  # -> 27
```

Projection, skip and limit do not matter when counting, and are left out of the pipeline.
Filters and joins remain, because a filter may refer to a joined field.
"""

from .base import PipelineHandlerBase
from ..stages import Stage


class MongoCount(PipelineHandlerBase):
    """ MongoDB count

        Appends a {$count: 'total'} stage, and gets the number out of the result row.
    """

    handler_name = 'count'
    method_name = 'count'

    #: The field that $count puts the number into
    output_field = 'total'

    def compile_stages(self):
        return [Stage.count(self.output_field)]

    def count_from(self, rows):
        """ Get the count from the result rows

            $count produces no rows at all when there's nothing to count
        """
        for row in rows:
            return row[self.output_field]
        return 0
