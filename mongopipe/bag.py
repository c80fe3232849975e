""" Relationship metadata

To join related documents, MongoPipe needs to know, for every field that references another entity:

* The name of the entity it references,
* Whether it's a single reference or an array of references,
* The collection the referenced documents live in,
* Which fields to match on.

MongoPipe does not define schemas: it asks a `RelationshipLookup` object.
Two of them are available out of the box:

* `SchemaRelationshipLookup`: a plain dict that describes the relationships
* `ModelRelationshipLookup`: reads relationships from SqlAlchemy declarative models

Anything with a `lookup(entity_name, field)` method (or just a callable with the same signature)
would do as well.
"""

from collections import namedtuple
from typing import Union, Mapping, FrozenSet, Dict

from sqlalchemy import inspect
from sqlalchemy.orm import RelationshipProperty, configure_mappers


class Cardinality:
    """ How many documents a relationship field references """

    #: The field holds one reference
    SINGLE = 'single'
    #: The field holds an array of references
    ARRAY = 'array'


#: Relationship metadata: everything needed to $lookup a related entity
RelationshipMetadata = namedtuple('RelationshipMetadata', (
    'foreign_entity',  # Name of the referenced entity
    'cardinality',  # Cardinality.SINGLE | Cardinality.ARRAY
    'collection',  # Collection of the referenced entity
    'local_field',  # Field of this document that holds the reference; `None` means: the field itself
    'foreign_field',  # Field of the referenced document to match against
), defaults=(None, '_id'))


class LookupMiss:
    """ A lookup outcome that is not a relationship """

    __slots__ = ('reason',)

    def __init__(self, reason: str):
        self.reason = reason

    def __bool__(self):
        return False

    def __repr__(self):
        return '<{}>'.format(self.reason)


#: The entity has no such field
NOT_FOUND = LookupMiss('not found')

#: The field exists, but it does not reference any entity
NOT_A_RELATIONSHIP = LookupMiss('not a relationship')


class RelationshipLookup:
    """ Interface: resolve a field of an entity into relationship metadata """

    def lookup(self, entity_name: str, field: str) -> Union[RelationshipMetadata, LookupMiss]:
        """ Get relationship metadata for `field` on `entity_name`

        :return: RelationshipMetadata, or one of: NOT_FOUND, NOT_A_RELATIONSHIP
        """
        raise NotImplementedError()

    def __call__(self, entity_name: str, field: str) -> Union[RelationshipMetadata, LookupMiss]:
        return self.lookup(entity_name, field)


class SchemaRelationshipLookup(RelationshipLookup):
    """ Relationships described by a plain dict

        Example:

            SchemaRelationshipLookup({
                'User': {
                    'name': None,  # a field, but not a relationship
                    'role': 'Role',  # a single reference
                    'posts': ['Post'],  # an array of references
                },
                'Post': {
                    'category': 'Category',
                },
            }, collections={'Category': 'categories'})

        A value may also be a complete `RelationshipMetadata` object, which is used as is.
    """

    def __init__(self, schema: Mapping[str, Mapping], collections: Mapping[str, str] = None, identity: Mapping[str, str] = None):
        """ Init the schema

        :param schema: {entity name: {field: None | 'Entity' | ['Entity'] | RelationshipMetadata}}
        :param collections: {entity name: collection name}.
            The default is the lowercased entity name with an "s": 'User' -> 'users'
        :param identity: {entity name: identity field}. The default is '_id'
        """
        self.schema = schema
        self.collections = collections or {}
        self.identity = identity or {}

        # Validate
        for entity_name, fields in self.schema.items():
            for field, ref in fields.items():
                self._metadata(entity_name, field, ref)  # raises ValueError

    def collection_name(self, entity_name: str) -> str:
        """ Get the collection name for an entity """
        try:
            return self.collections[entity_name]
        except KeyError:
            return entity_name.lower() + 's'

    def identity_field(self, entity_name: str) -> str:
        """ Get the name of the identity field for an entity """
        return self.identity.get(entity_name, '_id')

    def lookup(self, entity_name, field):
        try:
            ref = self.schema[entity_name][field]
        except KeyError:
            return NOT_FOUND

        return self._metadata(entity_name, field, ref)

    def _metadata(self, entity_name, field, ref):
        """ Convert a schema value into RelationshipMetadata """
        # Not a relationship
        if ref is None:
            return NOT_A_RELATIONSHIP
        # Ready to use
        elif isinstance(ref, RelationshipMetadata):
            return ref
        # Single reference
        elif isinstance(ref, str):
            foreign_entity, cardinality = ref, Cardinality.SINGLE
        # Array of references
        elif isinstance(ref, (list, tuple)) and len(ref) == 1 and isinstance(ref[0], str):
            foreign_entity, cardinality = ref[0], Cardinality.ARRAY
        else:
            raise ValueError('Invalid schema for "{}.{}": {!r}'.format(entity_name, field, ref))

        return RelationshipMetadata(
            foreign_entity=foreign_entity,
            cardinality=cardinality,
            collection=self.collection_name(foreign_entity),
            foreign_field=self.identity_field(foreign_entity),
        )


class ModelRelationBags:
    """ Relationship information about a single SqlAlchemy model

        Every model is inspected only once: use for_model()
    """
    __bags_per_model_cache = {}

    @classmethod
    def for_model(cls, model) -> 'ModelRelationBags':
        """ Get bags for a model ; initialize them only once """
        try:
            return cls.__bags_per_model_cache[model]
        except KeyError:
            cls.__bags_per_model_cache[model] = bags = cls(model)
            return bags

    def __init__(self, model):
        # Relationships are only known after all mappers are configured
        configure_mappers()

        insp = inspect(model)

        self.model = model
        self.model_name = model.__name__
        self.collection = insp.local_table.name

        #: Names of all mapped attributes: columns, relationships, synonyms, etc
        self.names = frozenset(insp.attrs.keys())  # type: FrozenSet[str]
        #: Relationships
        self.relations = dict(insp.relationships.items())  # type: Dict[str, RelationshipProperty]

    def get_target_model(self, name: str):
        """ Get target model of a relationship """
        return self.relations[name].mapper.class_

    def get_relationship_metadata(self, name: str) -> Union[RelationshipMetadata, LookupMiss]:
        """ Get relationship metadata for an attribute """
        if name not in self.names:
            return NOT_FOUND
        if name not in self.relations:
            return NOT_A_RELATIONSHIP

        rel = self.relations[name]

        # Only simple relationships can be expressed with a $lookup: one column on each side
        if rel.secondary is not None or len(rel.local_remote_pairs) != 1:
            return NOT_A_RELATIONSHIP

        (local_column, remote_column), = rel.local_remote_pairs
        target_bags = self.for_model(self.get_target_model(name))
        return RelationshipMetadata(
            foreign_entity=target_bags.model_name,
            cardinality=Cardinality.ARRAY if rel.uselist else Cardinality.SINGLE,
            collection=target_bags.collection,
            local_field=local_column.name,
            foreign_field=remote_column.name,
        )


class ModelRelationshipLookup(RelationshipLookup):
    """ Relationships of SqlAlchemy declarative models

        Entity names are model class names, and collection names are table names.
        Models that are reachable through relationships are registered automatically:

            lookup = ModelRelationshipLookup(User)
            lookup.lookup('Article', 'author')  # works: User.articles -> Article
    """

    def __init__(self, *models):
        self._models = {}
        for model in models:
            self.register(model)

    def register(self, model):
        """ Register a model, and every model it's related to """
        bags = ModelRelationBags.for_model(model)
        if bags.model_name in self._models:
            return self
        self._models[bags.model_name] = model

        for name in bags.relations:
            self.register(bags.get_target_model(name))
        return self

    @property
    def entity_names(self) -> FrozenSet[str]:
        """ Names of all registered entities """
        return frozenset(self._models)

    def lookup(self, entity_name, field):
        try:
            model = self._models[entity_name]
        except KeyError:
            return NOT_FOUND

        return ModelRelationBags.for_model(model).get_relationship_metadata(field)
