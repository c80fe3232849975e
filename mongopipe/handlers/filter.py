"""
### Where Operation
Filtering corresponds to the `$match` stage of an aggregation pipeline.

Every `.where()` call appends one `$match` stage, right where it was called:
before or after joins, sorts, and computed fields.
Conditions from separate calls are never merged: they just filter the documents one after another.

There are three ways to call it:

```python
# A MongoDB condition object, used as is
User.pipeline_query(executor).where({'age': {'$gte': 18}, 'sex': 'female'})

# Equality check: field = value
User.pipeline_query(executor).where('name', 'John')

# Comparison using an operator
User.pipeline_query(executor).where('age', '>=', 18)
```

#### Operators

* `=`, `==`: `$eq`
* `!=`: `$ne`
* `>`, `>=`, `<`, `<=`: `$gt`, `$gte`, `$lt`, `$lte`
* `in`, `nin`: `$in`, `$nin`: the value is a list
* `regex`: `$regex`. A string value is compiled into a case-insensitive regular expression;
  a compiled `re.Pattern` is used as is.

More operators can be added with the `operators` setting.
"""

import re
from typing import Any, Mapping

from .base import PipelineHandlerBase
from ..stages import Stage


class MongoFilter(PipelineHandlerBase):
    """ MongoDB $match conditions

        * where(conditions): { a: 1, b: { $gt: 2 } }, as is
        * where(field, value): { field: value }
        * where(field, operator, value): { field: { $operator: value } }
    """

    handler_name = 'filter'
    method_name = 'where'

    # Operator tokens and the MongoDB comparison operators they stand for
    _operators = {
        '=': '$eq',
        '==': '$eq',
        '!=': '$ne',
        '>': '$gt',
        '>=': '$gte',
        '<': '$lt',
        '<=': '$lte',
        'in': '$in',
        'nin': '$nin',
        'regex': '$regex',
    }

    def __init__(self, entity, operators=None):
        """ Init a filter

        :param entity: Entity name
        :param operators: A dict of additional operators to recognize: {'token': '$operator'}
        :type operators: dict[str, str]
        """
        super(MongoFilter, self).__init__(entity)

        # Extra configuration
        operators = operators or {}
        for token, mongo_operator in operators.items():
            if not isinstance(mongo_operator, str) or not mongo_operator.startswith('$'):
                raise ValueError('Operator "{}" must map to a MongoDB operator like "$eq"; {!r} given'
                                 .format(token, mongo_operator))
        self.operators = {**self._operators, **operators}

    def input(self, *args):
        """ Compile a $match stage for any of the three call signatures

            The signature is chosen by the number of arguments only.

            :rtype: dict
        """
        if len(args) == 1:
            return self.compile_conditions(*args)
        elif len(args) == 2:
            return self.compile_equals(*args)
        elif len(args) == 3:
            return self.compile_operator(*args)
        else:
            raise self.invalid_input('expects 1 to 3 arguments; {} given'.format(len(args)))

    def compile_conditions(self, conditions: Mapping) -> dict:
        """ where(conditions): a ready-made condition object """
        if not isinstance(conditions, Mapping):
            raise self.invalid_input('conditions must be an object; {} provided'.format(type(conditions)))
        return Stage.match(conditions)

    def compile_equals(self, field: str, value: Any) -> dict:
        """ where(field, value): equality check """
        self._validate_field(field)
        return Stage.match({field: value})

    def compile_operator(self, field: str, operator: str, value: Any) -> dict:
        """ where(field, operator, value): comparison """
        self._validate_field(field)

        # Operator
        try:
            mongo_operator = self.operators[operator]
        except (KeyError, TypeError):  # TypeError: unhashable
            raise self.invalid_input('Unsupported operator: {}'.format(operator))

        # Regular expressions are case-insensitive, unless compiled by the caller
        if mongo_operator == '$regex' and not isinstance(value, re.Pattern):
            value = re.compile(str(value), re.IGNORECASE)

        return Stage.match({field: {mongo_operator: value}})

    def _validate_field(self, field):
        if not isinstance(field, str) or not field:
            raise self.invalid_input('field name must be a non-empty string; {!r} given'.format(field))
