"""
### Join Operation
Joining corresponds to the `$lookup` stage of an aggregation pipeline:
a field that references another entity is replaced with the referenced document(s).

```python
# Single reference: `user.role` becomes a document, or `None` when there's no such role
User.pipeline_query(executor).join('role')

# Array of references: `user.posts` becomes a list of documents; empty when nothing matches
User.pipeline_query(executor).join('posts')

# Nested: every post gets its category
User.pipeline_query(executor).join('posts.category')
```

#### Rules

* Relationship metadata comes from a `RelationshipLookup` object.
  A field that it doesn't know, or a field that is not a relationship, is an error.
* A single reference is `$unwind`ed, but documents are never dropped:
  a missing reference shows up as a missing field.
* Joining the same path twice has no effect. `join('posts.category')` joins `posts` as well,
  so a later `join('posts')` has no effect either.
* A nested path goes at most 2 levels deep, and the `max_join_depth` setting may lower this limit.
* With a nested path, the parent array keeps its length and its order.
  Elements without a matching child are left as they were.
* All metadata is resolved before anything is added to the pipeline:
  a failed `join()` call leaves the query as it was.
"""

import logging

from .base import PipelineHandlerBase
from ..bag import Cardinality, NOT_A_RELATIONSHIP
from ..exc import JoinDepthError, RelationNotFoundError, NotARelationError
from ..stages import Stage

logger = logging.getLogger(__name__)


class MongoJoin(PipelineHandlerBase):
    """ MongoDB relationship joins

        * 'field': join a relationship of the entity
        * 'parent.child': join a relationship, and then a relationship of the related entity
    """

    handler_name = 'join'
    method_name = 'join'

    # The deepest relationship path this handler knows how to compile
    MAX_SUPPORTED_DEPTH = 2

    def __init__(self, entity, max_join_depth=2):
        """ Init a join

        :param entity: Entity name
        :param max_join_depth: The maximum number of segments in a relationship path
        """
        super(MongoJoin, self).__init__(entity)

        # Config
        if isinstance(max_join_depth, bool) or not isinstance(max_join_depth, int) or max_join_depth < 1:
            raise ValueError('max_join_depth must be a positive integer; {!r} given'.format(max_join_depth))
        self.max_join_depth = max_join_depth

        #: The RelationshipLookup (or a plain callable)
        self.lookup = None

        # On input
        #: Relationship paths that have already been joined
        self.joined = set()

    def with_lookup(self, lookup):
        """ Use this RelationshipLookup to resolve relationships

            :type lookup: mongopipe.bag.RelationshipLookup | callable
        """
        self.lookup = getattr(lookup, 'lookup', lookup)
        return self

    def __copy__(self):
        result = super(MongoJoin, self).__copy__()
        result.joined = set(self.joined)
        return result

    def input(self, path):
        """ Compile the stages that join a relationship path

            Paths that were joined before produce no stages.

            :type path: str
            :rtype: list[dict]
            :raises InvalidQueryError: invalid path
            :raises JoinDepthError: the path is too deep
            :raises InvalidRelationError: not a relationship
        """
        # Validate
        if not isinstance(path, str) or not path:
            raise self.invalid_input('expects a non-empty string path')

        segments = path.split('.')
        if len(segments) > self.max_join_depth:
            raise JoinDepthError(path, self.max_join_depth)
        if len(segments) > self.MAX_SUPPORTED_DEPTH:
            raise self.invalid_input('supports at most {} levels of nesting; "{}" given'
                                     .format(self.MAX_SUPPORTED_DEPTH, path))
        if not all(segments):
            raise self.invalid_input('empty segment in path "{}"'.format(path))

        # Idempotent
        if path in self.joined:
            logger.debug('%s.join(%r): already joined, skipped', self.entity, path)
            return []

        # Compile
        if len(segments) == 1:
            stages = self._compile_relation(path)
        else:
            stages = self._compile_nested_relation(*segments)

        # Done
        logger.debug('%s.join(%r): %d stages', self.entity, path, len(stages))
        return stages

    def _compile_relation(self, field):
        """ join('field') """
        metadata = self._resolve(self.entity, field, field)
        self.joined.add(field)
        return self._relation_stages(field, metadata)

    def _compile_nested_relation(self, parent, child):
        """ join('parent.child') """
        path = parent + '.' + child

        # Resolve everything first
        parent_metadata = self._resolve(self.entity, parent, path)
        child_metadata = self._resolve(parent_metadata.foreign_entity, child, path)

        # Parent
        if parent in self.joined:
            stages = []
        else:
            stages = self._relation_stages(parent, parent_metadata)

        # Child: load it into a temporary field
        alias = self.temporary_alias(parent, child)
        child_local_field = child_metadata.local_field or child
        stages.append(Stage.lookup(child_metadata.collection,
                                   parent + '.' + child_local_field,
                                   child_metadata.foreign_field,
                                   alias))

        # Put the children into their parents
        if parent_metadata.cardinality == Cardinality.ARRAY:
            reshaped = self._merge_into_every_element(parent, child, child_metadata, alias)
        else:
            reshaped = self._merge_into_document(parent, child, child_metadata, alias)
        stages.append(Stage.set({parent: reshaped}))

        # Clean up
        stages.append(Stage.unset(alias))

        self.joined.update((parent, path))
        return stages

    def _resolve(self, entity, field, path):
        """ Get relationship metadata, or fail

            :raises RelationNotFoundError
            :raises NotARelationError
        """
        metadata = self.lookup(entity, field)
        where = '{}("{}")'.format(self.method_name, path)
        if metadata is NOT_A_RELATIONSHIP:
            raise NotARelationError(entity, field, where)
        elif not metadata:
            raise RelationNotFoundError(entity, field, where)
        return metadata

    @staticmethod
    def temporary_alias(parent, child):
        """ The field that nested documents are loaded into before they're put in place """
        return '{}__{}__joined'.format(parent, child)

    @staticmethod
    def _relation_stages(field, metadata):
        """ $lookup a relationship into `field`; $unwind it if it's a single reference """
        stages = [Stage.lookup(metadata.collection,
                               metadata.local_field or field,
                               metadata.foreign_field,
                               field)]
        if metadata.cardinality == Cardinality.SINGLE:
            stages.append(Stage.unwind(field, preserve_null_and_empty_arrays=True))
        return stages

    @staticmethod
    def _matching_children(child_metadata, alias, reference):
        """ Expression: children from `alias` that `reference` points to

            :param reference: Expression for the reference value(s) held by the parent
        """
        child_identity = '$$child.' + child_metadata.foreign_field

        # Single reference: the first match
        if child_metadata.cardinality == Cardinality.SINGLE:
            return {'$arrayElemAt': [
                {'$filter': {
                    'input': '$' + alias,
                    'as': 'child',
                    'cond': {'$eq': [child_identity, reference]},
                }},
                0
            ]}
        # Array of references: all matches
        else:
            return {'$filter': {
                'input': '$' + alias,
                'as': 'child',
                'cond': {'$in': [child_identity,
                                 {'$cond': [{'$isArray': reference}, reference, []]}]},
            }}

    @classmethod
    def _merge_into_every_element(cls, parent, child, child_metadata, alias):
        """ Expression: the parent array, every element merged with its children

            A missing match evaluates to nothing, and $mergeObjects leaves the element's own field as it was.
        """
        reference = '$$el.' + (child_metadata.local_field or child)
        return {'$map': {
            'input': '$' + parent,
            'as': 'el',
            'in': {'$mergeObjects': [
                '$$el',
                {child: cls._matching_children(child_metadata, alias, reference)},
            ]},
        }}

    @classmethod
    def _merge_into_document(cls, parent, child, child_metadata, alias):
        """ Expression: the parent document merged with its children; a missing parent stays missing """
        if child_metadata.cardinality == Cardinality.SINGLE:
            children = {'$arrayElemAt': ['$' + alias, 0]}
        else:
            children = '$' + alias

        return {'$cond': [
            {'$ifNull': ['$' + parent, False]},
            {'$mergeObjects': ['$' + parent, {child: children}]},
            '$' + parent,
        ]}
