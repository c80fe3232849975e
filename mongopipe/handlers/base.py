from ..exc import InvalidQueryError


class PipelineHandlerBase:
    """ An implementation of a fluent method of PipelineQuery

        Every subclass handles a single concern: filtering, sorting, projection, etc.
    """

    #: Name of the handler: used for `<name>_enabled` settings
    handler_name = None

    #: Name of the PipelineQuery method that this object is handling. Used in error messages.
    method_name = None

    def __init__(self, entity):
        """ Initialize the handler with an entity.

        This method does *not* receive any input data just yet, with the purpose of having an
        object that can be extended with some interesting defaults right at init time.

        :param entity: Name of the entity the pipeline is run against
        :type entity: str

        NOTE: Any arguments that have default values will be treated as handler settings!!
        """
        #: The entity to build stages for
        self.entity = entity

        #: PipelineQuery bound to this object. It may remain uninitialized.
        self.query = None

    def with_query(self, query):
        """ Bind this object with a PipelineQuery

            :type query: mongopipe.query.PipelineQuery
            """
        self.query = query
        return self

    def __copy__(self):
        """ Handlers are copied together with their PipelineQuery

            Subclasses that keep mutable state have to copy it here.
        """
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update(self.__dict__)
        return result

    def invalid_input(self, err: str) -> InvalidQueryError:
        """ Make an error that names the method that has received invalid input """
        return InvalidQueryError('{}(): {}'.format(self.method_name, err))

    def input(self, *args):
        """ Receive the arguments of the fluent method, and validate them.

        :raises InvalidQueryError
        :raises InvalidRelationError
        """
        raise NotImplementedError()

    def compile_stages(self):
        """ Compile the pipeline stages

        :rtype: list[dict]
        """
        raise NotImplementedError()
