"""
MongoPipe is a fluent query builder that compiles chained method calls
into a [MongoDB aggregation pipeline](https://docs.mongodb.com/manual/core/aggregation-pipeline/).

The main use case is the application code that needs *filtering*, *sorting*, *pagination*,
or to load some *related documents*, without writing the pipeline by hand:

```python
page = await User.pipeline_query(executor) \\
    .where('age', '>=', 18) \\
    .join('posts.category') \\
    .order_by('-age') \\
    .select('-password') \\
    .paginate(page=2, per_page=10)
```

Relationships are described either with a plain dict, or with SqlAlchemy declarative models.
"""

# Exceptions that are used here and there
from .exc import *

# Pipeline stages: kinds and constructors
from .stages import Stage

# MongoPipe needs to know the relationships between your entities.
# All this is handled by the following classes:
from .bag import Cardinality, RelationshipMetadata, NOT_FOUND, NOT_A_RELATIONSHIP
from .bag import RelationshipLookup, SchemaRelationshipLookup, ModelRelationshipLookup

# The heart of MongoPipe are the handlers:
# that's where your method calls are converted to actual pipeline stages!
from . import handlers

# PipelineQuery is the fluent builder that feeds your method calls to the handlers
from .query import PipelineQuery

# Executors run the pipelines
from .executor import Executor, CollectionExecutor

# SqlAlchemy declarative base that defines .pipeline_query() on it
# That's just for your convenience.
from .sa import MongoPipeBase

# Helpers
# Settings object for PipelineQuery
from mongopipe.util import PipelineQuerySettingsDict
# One page of results, with the total count
from mongopipe.util import Page, PaginatedPipeline
