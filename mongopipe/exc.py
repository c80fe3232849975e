class BaseMongoPipeException(Exception):
    pass


class InvalidQueryError(BaseMongoPipeException):
    """ Invalid input provided to one of the fluent methods """

    def __init__(self, err: str):
        super(InvalidQueryError, self).__init__('Query error: {err}'.format(err=err))


class DisabledError(InvalidQueryError):
    """ The feature is disabled """


class JoinDepthError(InvalidQueryError):
    """ A relationship path is nested deeper than `max_join_depth` allows """

    def __init__(self, path: str, max_depth: int):
        self.path = path
        self.max_depth = max_depth

        super(JoinDepthError, self).__init__(
            'join(): supports up to {max_depth} levels of nesting; "{path}" given'.format(
                max_depth=max_depth,
                path=path)
        )


class InvalidRelationError(BaseMongoPipeException):
    """ A relationship path mentioned an invalid field """

    #: What's wrong with the field
    reason = 'is not a valid relation'

    def __init__(self, entity: str, field: str, where: str):
        self.entity = entity
        self.field = field
        self.where = where

        super(InvalidRelationError, self).__init__(
            'Field "{field}" {reason} on "{entity}", specified in {where}'.format(
                field=field,
                reason=self.reason,
                entity=entity,
                where=where)
        )


class RelationNotFoundError(InvalidRelationError):
    """ The field is not known to the entity at all """
    reason = 'not found'


class NotARelationError(InvalidRelationError):
    """ The field exists, but does not reference another entity """
    reason = 'is not a relationship'
