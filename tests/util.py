from mongopipe import Executor


class FakeExecutor(Executor):
    """ Executor that records pipelines, and returns canned results

        Every execute() call takes the next result from the list; when there's none left, it returns [].
    """

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def execute(self, entity, pipeline):
        self.calls.append((entity, pipeline))
        return self.results.pop(0) if self.results else []

    @property
    def pipelines(self):
        """ All the pipelines that were executed """
        return [pipeline for entity, pipeline in self.calls]

    @property
    def last_pipeline(self):
        entity, pipeline = self.calls[-1]
        return pipeline


class FailingExecutor(Executor):
    """ Executor that always fails """

    def __init__(self, error):
        self.error = error
        self.calls = 0

    async def execute(self, entity, pipeline):
        self.calls += 1
        raise self.error
