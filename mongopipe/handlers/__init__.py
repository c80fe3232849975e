"""

If you know how to write MongoDB aggregation pipelines, you already know what MongoPipe produces.
MongoPipe builds the pipeline for you, one fluent method call at a time:

```python
users = await User.pipeline_query(executor) \\
    .where('age', '>=', 18) \\
    .join('role') \\
    .order_by('-age') \\
    .select('name age role') \\
    .limit(10) \\
    .get()
```

This is the pipeline that it runs:

```python
[
    {'$match': {'age': {'$gte': 18}}},
    {'$lookup': {'from': 'roles', 'localField': 'role_id', 'foreignField': 'id', 'as': 'role'}},
    {'$unwind': {'path': '$role', 'preserveNullAndEmptyArrays': True}},
    {'$sort': {'age': -1}},
    {'$project': {'name': 1, 'age': 1, 'role': 1}},
    {'$limit': 10},
]
```



Query Methods
-------------

Every method is implemented by a handler:

* `where()`: [Where Operation](#where-operation) filters the documents, using your criteria
* `select()`: [Select Operation](#select-operation) selects the fields to be returned
* `order_by()`: [Order By Operation](#order-by-operation) determines the sorting of the results
* `join()`: [Join Operation](#join-operation) loads related documents
* `add_fields()`: [Add Fields Operation](#add-fields-operation) computes new fields
* `skip()`, `limit()`: [Skip & Limit Operations](#skip--limit-operations) slice the results
* `count()`: [Count Operation](#count-operation) counts the documents without returning them

Filters, sorts, joins and computed fields are applied in the order the methods were called:
a `where()` that comes after a `join()` can filter by the joined fields.
The projection, skip and limit are always applied at the very end.
"""

from .base import PipelineHandlerBase
from .filter import MongoFilter
from .project import MongoProject
from .sort import MongoSort
from .join import MongoJoin
from .add_fields import MongoAddFields
from .limit import MongoLimit
from .count import MongoCount
