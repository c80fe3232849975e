import logging
from copy import copy

from . import handlers
from .util import PipelineQuerySettingsHandler, PaginatedPipeline

logger = logging.getLogger(__name__)


class PipelineQuery(object):
    """ Fluent builder of MongoDB aggregation pipelines

        Every fluent method validates its input right away, and returns the same object:

            users = await PipelineQuery('User', executor, lookup) \\
                .where('age', '>=', 18) \\
                .join('role') \\
                .order_by('-age name') \\
                .select('name age role') \\
                .limit(10) \\
                .get()

        Filters, sorts, joins and computed fields go into the pipeline in the order they were called.
        The projection, skip and limit always go last.

        A query can be executed many times: terminal methods (`get()`, `first()`, `count()`, `paginate()`)
        never change it. Use copy() to get an independent query that can be extended further.
    """

    def __init__(self, entity, executor, lookup, settings=None, **more_settings):
        """ Init a pipeline query

        :param entity: Name of the entity to query
        :type entity: str
        :param executor: The object that runs pipelines: `Executor`, or an `async def (entity, pipeline)` function
        :type executor: mongopipe.executor.Executor | callable
        :param lookup: The object that knows the relationships: `RelationshipLookup`,
            or a `(entity, field)` function
        :type lookup: mongopipe.bag.RelationshipLookup | callable
        :param settings: Settings for handlers.
            These are just plain kwargs names for every handler object's __init__ method.
            Note that you don't have to specify which object receives which kwarg:
            the `PipelineQuerySettingsHandler` object does that automatically.

            To disable a method, give `<handler-name>_enabled=False`.
            See `PipelineQuerySettingsDict` for the list of all settings.
        :type settings: dict | mongopipe.PipelineQuerySettingsDict | None
        :param more_settings: Settings, as keyword arguments
        """
        if not isinstance(entity, str) or not entity:
            raise ValueError('Entity name must be a non-empty string; {!r} given'.format(entity))

        self.entity = entity
        self.executor = executor
        self.lookup = lookup

        # Initialize the settings
        self._handler_settings = PipelineQuerySettingsHandler({**(settings or {}), **more_settings})

        #: The accumulated stages: filters, sorts, joins, computed fields. In call order.
        self._stages = []

        # Get ready: handlers
        self._init_handlers()

        # NOTE: keep in mind that this object is copy()ed in order to make it reusable.
        # Every property that can't be safely shared has to be copied inside the __copy__() method.

    def __copy__(self):
        """ Fork the query: the copy can be extended without affecting the original """
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update(self.__dict__)

        # Copy the accumulator
        result._stages = list(self._stages)

        # Copy handlers, and bind them to the copy
        for name in self.HANDLER_ATTR_NAMES:
            setattr(result, name, copy(getattr(self, name)).with_query(result))

        return result

    # region Fluent methods

    def where(self, *args):
        """ Filter documents: add a $match stage

            * where({'age': {'$gte': 18}})
            * where('name', 'John')
            * where('age', '>=', 18)

            See: MongoFilter
        """
        self._raise_if_handler_is_not_enabled('filter')
        self._stages.append(self.handler_filter.input(*args))
        return self

    def select(self, fields):
        """ Choose the fields to return. Replaces the previous projection.

            See: MongoProject
        """
        self._raise_if_handler_is_not_enabled('project')
        self.handler_project.input(fields)
        return self

    def order_by(self, *args):
        """ Sort documents. Adjacent calls are merged into a single $sort stage.

            See: MongoSort
        """
        self._raise_if_handler_is_not_enabled('sort')
        sort_spec = self.handler_sort.input(*args)
        self.handler_sort.merge_into(self._stages, sort_spec)
        return self

    def join(self, path):
        """ Load related documents

            * join('role')
            * join('posts.category')

            See: MongoJoin
        """
        self._raise_if_handler_is_not_enabled('join')
        self._stages.extend(self.handler_join.input(path))
        return self

    def add_fields(self, fields):
        """ Add computed fields

            See: MongoAddFields
        """
        self._raise_if_handler_is_not_enabled('add_fields')
        self._stages.append(self.handler_add_fields.input(fields))
        return self

    def skip(self, n):
        """ Skip `n` documents. `None` removes the skip. """
        self._raise_if_handler_is_not_enabled('limit', 'skip')
        self.handler_limit.input_skip(n)
        return self

    def limit(self, n):
        """ Return at most `n` documents. `None` removes the limit. """
        self._raise_if_handler_is_not_enabled('limit')
        self.handler_limit.input_limit(n)
        return self

    # endregion

    # region Pipeline

    def pipeline(self):
        """ Get the pipeline that `get()` would run

            :rtype: list[dict]
        """
        return self._finalize()

    def _finalize(self, skip=None, limit=None):
        """ Assemble the pipeline: accumulated stages, projection, skip, limit

            :param skip: Use this skip instead of the stored one
            :param limit: Use this limit instead of the stored one
        """
        stages = list(self._stages)
        stages.extend(self.handler_project.compile_stages())
        stages.extend(self.handler_limit.compile_stages(skip, limit))
        return stages

    # endregion

    # region Terminal methods

    async def get(self):
        """ Run the query, get all rows

            :rtype: list
        """
        return await self._execute(self._finalize())

    async def first(self):
        """ Run the query, get the first row, or None """
        rows = await self._execute(self._finalize(limit=1))
        return rows[0] if rows else None

    async def count(self):
        """ Count the documents. Projection, skip and limit are ignored.

            :rtype: int
        """
        self._raise_if_handler_is_not_enabled('count')
        rows = await self._execute(self._stages + self.handler_count.compile_stages())
        return self.handler_count.count_from(rows)

    async def paginate(self, page=1, per_page=10):
        """ Get one page of results and the total count, with a single query

            :param page: Page number, starting with 1
            :param per_page: Rows per page. Capped by `max_items`
            :rtype: mongopipe.util.Page
        """
        paginated = PaginatedPipeline(page, per_page, max_per_page=self.handler_limit.max_items)
        rows = await self._execute(paginated.pipeline(
            self._finalize(skip=paginated.skip, limit=paginated.limit),
            list(self._stages),
        ))
        return paginated.page_from(rows)

    async def _execute(self, pipeline):
        """ Give the pipeline to the executor. Exactly one call. """
        logger.debug('%s: aggregate %r', self.entity, pipeline)
        execute = getattr(self.executor, 'execute', self.executor)
        return await execute(self.entity, pipeline)

    # endregion

    def __repr__(self):
        return '{}({!r}, pipeline={!r})'.format(self.__class__.__name__, self.entity, self.pipeline())

    # region Handlers

    # The class to use for every handler
    _HANDLER_FILTER = handlers.MongoFilter
    _HANDLER_PROJECT = handlers.MongoProject
    _HANDLER_SORT = handlers.MongoSort
    _HANDLER_JOIN = handlers.MongoJoin
    _HANDLER_ADD_FIELDS = handlers.MongoAddFields
    _HANDLER_LIMIT = handlers.MongoLimit
    _HANDLER_COUNT = handlers.MongoCount

    HANDLER_NAMES = frozenset(('filter',
                               'project',
                               'sort',
                               'join',
                               'add_fields',
                               'limit',
                               'count'))
    HANDLER_ATTR_NAMES = frozenset('handler_' + name
                                   for name in HANDLER_NAMES)

    def _init_handlers(self):
        """ Initialize every handler """
        for name in self.HANDLER_NAMES:
            # Every handler: name, attr, class
            handler_attr_name = 'handler_' + name
            handler_cls_attr_name = '_HANDLER_' + name.upper()
            handler_cls = getattr(self, handler_cls_attr_name)

            setattr(self, handler_attr_name,
                    self._init_handler(name, handler_cls))

        # Relationships
        self.handler_join.with_lookup(self.lookup)

        # Check settings
        self._handler_settings.raise_if_invalid_handler_settings()

    def _init_handler(self, handler_name, handler_cls):
        """ Init a handler, and load its settings """
        handler_settings = self._handler_settings.get_settings(handler_name, handler_cls)
        return handler_cls(self.entity, **handler_settings).with_query(self)

    def _raise_if_handler_is_not_enabled(self, handler_name, method_name=None):
        """ Make sure the method is enabled

            :raises DisabledError
        """
        handler = getattr(self, 'handler_' + handler_name)
        self._handler_settings.raise_if_not_handler_enabled(
            self.entity, handler_name, method_name or handler.method_name)

    # Type hints for handlers
    handler_filter: handlers.MongoFilter
    handler_project: handlers.MongoProject
    handler_sort: handlers.MongoSort
    handler_join: handlers.MongoJoin
    handler_add_fields: handlers.MongoAddFields
    handler_limit: handlers.MongoLimit
    handler_count: handlers.MongoCount

    # endregion
