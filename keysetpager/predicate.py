""" Predicates: filter conditions as plain values

The paginator builds filters as predicate objects: `Compare`, `And`, `Or`, `Not`.
Every store adapter lowers them into its own native filter representation:
Python callables for `MemoryStore`, SQL expressions for `SAStore`.

Predicates can also be parsed from MongoDB-style filter documents:

    { "age": { "$gt": 18 }, "$or": [ { "role": "admin" }, { "role": "owner" } ] }
"""

from __future__ import annotations

from collections import abc
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from keysetpager import exc
from keysetpager.cursor import Position, CompositeKey


class Operator(Enum):
    """ Comparison operators """
    EQ = '$eq'
    NE = '$ne'
    LT = '$lt'
    LTE = '$lte'
    GT = '$gt'
    GTE = '$gte'
    IN = '$in'
    NIN = '$nin'


class Predicate:
    """ Base class for predicates """

    def export(self) -> dict:
        """ Export the predicate as a MongoDB-style filter document """
        raise NotImplementedError


@dataclass(frozen=True)
class Compare(Predicate):
    """ Compare a field to a value

    Example:
        Compare('age', Operator.GT, 18)  # age > 18
    """
    field: str
    op: Operator
    value: Any

    def export(self) -> dict:
        return {self.field: {self.op.value: self.value}}


@dataclass(frozen=True)
class And(Predicate):
    """ All clauses must hold

    A clause can also be a store-native filter: it's passed to the store as is
    """
    clauses: tuple

    def export(self) -> dict:
        return {'$and': [_export_clause(clause) for clause in self.clauses]}


@dataclass(frozen=True)
class Or(Predicate):
    """ At least one clause must hold """
    clauses: tuple

    def export(self) -> dict:
        return {'$or': [_export_clause(clause) for clause in self.clauses]}


@dataclass(frozen=True)
class Not(Predicate):
    """ The clause must not hold """
    clause: Any

    def export(self) -> dict:
        return {'$not': _export_clause(self.clause)}


def _export_clause(clause) -> Any:
    # Native filters are given as is
    return clause.export() if isinstance(clause, Predicate) else clause


def and_(*clauses) -> Optional[Any]:
    """ Join clauses together with AND. Skips `None`s.

    Returns:
        `None` if there are no clauses, the clause itself if there's only one, `And` otherwise
    """
    clauses = tuple(clause for clause in clauses if clause is not None)

    if not clauses:
        return None
    elif len(clauses) == 1:
        return clauses[0]
    else:
        return And(clauses)


# region Keyset predicate

def position_predicate(position: Position, op: Operator, pagination_field: str, primary_key_field: str) -> Predicate:
    """ Build a predicate that selects records strictly beyond the position

    The records are ordered by (pagination_field, primary_key_field).
    When the pagination field is the primary key itself, a simple comparison is enough:

        pagination_field <op> value

    Otherwise the pagination field may have duplicates, and ties are broken by the primary key:

        pagination_field <op> value OR (pagination_field = value AND primary_key_field <op> key)

    Args:
        position: The position to start from
        op: Operator.LT to walk backwards in the sort order, Operator.GT to walk forward
        pagination_field: The field to paginate by
        primary_key_field: The unique key field
    """
    assert op in (Operator.LT, Operator.GT)

    if pagination_field == primary_key_field:
        return Compare(pagination_field, op, position.value)

    assert isinstance(position, CompositeKey)
    return Or((
        Compare(pagination_field, op, position.value),
        And((
            Compare(pagination_field, Operator.EQ, position.value),
            Compare(primary_key_field, op, position.key),
        )),
    ))

# endregion


# region Filter documents

def parse_filter(filter: dict) -> Optional[Predicate]:
    """ Parse a MongoDB-style filter document into a predicate

    Supports:
    * { field: value } shortcut for $eq
    * { field: { $op: value, ... } } with operators: $eq $ne $lt $lte $gt $gte $in $nin
    * { $and: [ ... ] }, { $or: [ ... ] }, { $not: { ... } }

    Multiple keys are ANDed together.

    Raises:
        exc.InvalidRequestError: malformed filter
    """
    if not isinstance(filter, dict):
        raise exc.InvalidRequestError('"where" must be an object')

    return and_(*_parse_conditions(filter))


def _parse_conditions(condition: dict) -> abc.Iterator[Predicate]:
    for key, value in condition.items():
        # If a key starts with $ ($and, $or, ...), it is a boolean expression
        if key.startswith('$'):
            yield _parse_boolean_expression(key, value)
        # If not, then it's a field expression
        else:
            yield from _parse_field_expressions(key, value)


def _parse_field_expressions(field_name: str, value: Any) -> abc.Iterator[Predicate]:
    # If the value is not a dict, it's a shortcut: { key: value }
    if not isinstance(value, dict):
        yield Compare(field_name, Operator.EQ, value)
        return

    # If the value is a dict, every item will be an operator and an operand
    for operator, operand in value.items():
        try:
            op = Operator(operator)
        except ValueError:
            raise exc.InvalidRequestError(f'Unsupported operator: {operator}')

        if op in (Operator.IN, Operator.NIN) and not isinstance(operand, list):
            raise exc.InvalidRequestError(f'Filter: {operator} argument must be an array')

        yield Compare(field_name, op, operand)


def _parse_boolean_expression(operator: str, conditions: Any) -> Predicate:
    # $not is the only unary operator
    if operator == '$not':
        if not isinstance(conditions, dict):
            raise exc.InvalidRequestError(f"{operator}'s operand must be an object")

        clause = parse_filter(conditions)
        if clause is None:
            raise exc.InvalidRequestError(f"{operator}'s operand must not be empty")

        return Not(clause)

    if operator not in ('$and', '$or'):
        raise exc.InvalidRequestError(f'Unsupported boolean operator: {operator}')

    # Every other operator receives a list of conditions
    if not isinstance(conditions, list) or not all(isinstance(c, dict) for c in conditions):
        raise exc.InvalidRequestError(f"{operator}'s operand must be an array of objects")

    clauses = tuple(
        clause
        for clause in map(parse_filter, conditions)
        if clause is not None
    )
    return And(clauses) if operator == '$and' else Or(clauses)

# endregion
