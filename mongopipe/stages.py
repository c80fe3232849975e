"""
### Pipeline Stages

A pipeline is a list of stages, and every stage is a single-key dict:

```python
[
    {'$match': {'age': {'$gte': 18}}},
    {'$sort': {'name': 1}},
    {'$limit': 10},
]
```

The key identifies the kind of the stage, and the value is its body, in the exact
shape the MongoDB aggregation framework expects it.

This module names the stage kinds, and has one constructor for each of them,
so that nobody has to spell `'$preserveNullAndEmptyArrays'` by hand.
"""

from typing import Any, Mapping, List


class Stage:
    """ Stage kinds, and stage constructors """

    MATCH = '$match'
    SORT = '$sort'
    SKIP = '$skip'
    LIMIT = '$limit'
    PROJECT = '$project'
    LOOKUP = '$lookup'
    UNWIND = '$unwind'
    SET = '$set'
    UNSET = '$unset'
    ADD_FIELDS = '$addFields'
    FACET = '$facet'
    COUNT = '$count'

    KINDS = frozenset((MATCH, SORT, SKIP, LIMIT, PROJECT, LOOKUP, UNWIND, SET, UNSET, ADD_FIELDS, FACET, COUNT))

    @staticmethod
    def kind(stage: Mapping) -> str:
        """ Get the kind of a stage: its only key

        :raises ValueError: not a stage
        """
        if not isinstance(stage, Mapping) or len(stage) != 1:
            raise ValueError('A stage must be a single-key dict; {!r} given'.format(stage))
        kind, = stage.keys()
        return kind

    @classmethod
    def is_a(cls, stage: Mapping, kind: str) -> bool:
        """ Test whether `stage` is of the given kind """
        return cls.kind(stage) == kind

    # region Constructors

    @classmethod
    def match(cls, conditions: Mapping) -> dict:
        return {cls.MATCH: conditions}

    @classmethod
    def sort(cls, spec: Mapping[str, int]) -> dict:
        return {cls.SORT: spec}

    @classmethod
    def skip(cls, n: int) -> dict:
        return {cls.SKIP: n}

    @classmethod
    def limit(cls, n: int) -> dict:
        return {cls.LIMIT: n}

    @classmethod
    def project(cls, projection: Mapping[str, int]) -> dict:
        return {cls.PROJECT: projection}

    @classmethod
    def lookup(cls, from_: str, local_field: str, foreign_field: str, as_: str) -> dict:
        return {cls.LOOKUP: {
            'from': from_,
            'localField': local_field,
            'foreignField': foreign_field,
            'as': as_,
        }}

    @classmethod
    def unwind(cls, field: str, preserve_null_and_empty_arrays: bool = True) -> dict:
        return {cls.UNWIND: {
            'path': '$' + field,
            'preserveNullAndEmptyArrays': preserve_null_and_empty_arrays,
        }}

    @classmethod
    def set(cls, fields: Mapping[str, Any]) -> dict:
        return {cls.SET: fields}

    @classmethod
    def unset(cls, field: str) -> dict:
        return {cls.UNSET: field}

    @classmethod
    def add_fields(cls, fields: Mapping[str, Any]) -> dict:
        return {cls.ADD_FIELDS: fields}

    @classmethod
    def facet(cls, **branches: List[dict]) -> dict:
        return {cls.FACET: branches}

    @classmethod
    def count(cls, output_field: str) -> dict:
        return {cls.COUNT: output_field}

    # endregion
