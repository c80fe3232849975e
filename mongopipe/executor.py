"""
### Executors

PipelineQuery does not talk to MongoDB by itself: it gives the pipeline to an executor,
which runs it and returns the resulting rows.

An executor is anything with this method:

```python
async def execute(self, entity: str, pipeline: list[dict]) -> list[dict]
```

`CollectionExecutor` runs pipelines with the `aggregate()` method of collection objects.
It works with pymongo, motor, and mongomock collections alike:

```python
from pymongo import MongoClient

db = MongoClient().blog
executor = CollectionExecutor({'User': db.users, 'Post': db.posts})
# or
executor = CollectionExecutor(lambda entity: db[entity.lower() + 's'])
```
"""

import inspect
from typing import Any, Callable, Mapping, Union, List


class Executor:
    """ Interface: run a pipeline against the collection of an entity """

    async def execute(self, entity: str, pipeline: List[dict]) -> List[Any]:
        """ Run the pipeline, get all rows

        Errors are not handled here: they propagate to the caller.
        """
        raise NotImplementedError()


class CollectionExecutor(Executor):
    """ Run pipelines with `collection.aggregate()`

        The result of `aggregate()` may be:

        * an awaitable (e.g. motor's `aggregate().to_list()` style wrappers)
        * an asynchronous iterable (e.g. a motor cursor)
        * a plain iterable (e.g. a pymongo cursor)
    """

    def __init__(self, collections: Union[Mapping[str, Any], Callable[[str], Any]]):
        """ Init the executor

        :param collections: {entity name: collection}, or a callable that gets a collection by entity name
        """
        self.collections = collections

    def get_collection(self, entity: str):
        """ Get the collection for an entity """
        if isinstance(self.collections, Mapping):
            return self.collections[entity]
        return self.collections(entity)

    async def execute(self, entity, pipeline):
        result = self.get_collection(entity).aggregate(pipeline)

        if inspect.isawaitable(result):
            result = await result

        if hasattr(result, '__aiter__'):
            return [row async for row in result]
        return list(result)

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self.collections)
