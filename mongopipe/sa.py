from .bag import ModelRelationshipLookup
from .query import PipelineQuery


class MongoPipeBase:
    """ Mixin for SqlAlchemy models that provides the .pipeline_query() method for convenience

        The entity name is the name of the model class, and relationships are read from the model.
    """

    # Override this method in your subclass in order to be able to configure MongoPipe on a per-model basis!
    @classmethod
    def _init_pipeline_query(cls, executor, settings: dict = None) -> PipelineQuery:
        """ Make a PipelineQuery for this model.

            Override this method in order to initialize PipelineQuery the way you need.

            :rtype: PipelineQuery
        """
        # Idea: have an `_api` field in your models that will feed PipelineQuery with the settings
        # Example: return PipelineQuery(cls.__name__, executor, cls._get_relationship_lookup(), {**cls._api, **settings})

        return PipelineQuery(cls.__name__, executor, cls._get_relationship_lookup(), settings)

    __lookup_per_class_cache = {}

    @classmethod
    def _get_relationship_lookup(cls) -> ModelRelationshipLookup:
        """ Get a ModelRelationshipLookup for this model ; initialize it only once """
        try:
            # Every model class has its own lookup, and no one inherits it.
            return cls.__lookup_per_class_cache[cls]
        except KeyError:
            cls.__lookup_per_class_cache[cls] = lookup = ModelRelationshipLookup(cls)
            return lookup

    @classmethod
    def pipeline_query(cls, executor, **settings) -> PipelineQuery:
        """ Build a PipelineQuery

        :param executor: The object that runs pipelines
        :type executor: mongopipe.executor.Executor
        :param settings: PipelineQuery settings
        :rtype: mongopipe.PipelineQuery
        """
        return cls._init_pipeline_query(executor, settings)
