""" MemoryStore: paginate Python lists of dicts """

from __future__ import annotations

import logging
import operator
from collections import abc
from typing import Any, Optional

from keysetpager import exc
from keysetpager.cursor import get_record_field
from keysetpager.predicate import Predicate, Compare, And, Or, Not, Operator
from keysetpager.typing import Record

from .base import StoreQuery, StoreResult, CountedRows, OrderBy, SortingDirection


logger = logging.getLogger(__name__)


class MemoryStore:
    """ Store: a list of records kept in memory

    Applies filtering, sorting, limits and projections in Python.
    Use it to paginate data that does not come from a database, or to fake a database in unit-tests.

    Example:
        store = MemoryStore([
            {'id': 1, 'score': 10},
            {'id': 2, 'score': 10},
            {'id': 3, 'score': 20},
        ])
        paginator = Paginator(store)
    """
    # The records
    records: list[Record]

    # Relations: { name => function(record) that loads related data }
    relations: dict[str, RelationLoaderCallable]

    def __init__(self, records: abc.Iterable[Record], *, relations: Optional[dict[str, RelationLoaderCallable]] = None):
        """ Prepare a store

        Args:
            records: The records to paginate. Dicts, or objects with attributes.
            relations: Functions that load related data for "include".
                They receive a record and return whatever has to be stored under the relation's name.
        """
        self.records = list(records)
        self.relations = relations or {}

    def execute(self, query: StoreQuery) -> StoreResult:
        # Filter
        matches = self.compile_filter(query.filter)
        rows = [record for record in self.records if matches(record)]
        count = len(rows)

        # Sort, limit
        rows = sort_records(rows, query.order)[:query.limit]

        # Project
        rows = [self.load_record(record, query) for record in rows]

        logger.debug(f'MemoryStore: {len(rows)} rows out of {count} matching')

        # Done
        if query.row_count:
            return CountedRows(rows=rows, count=count)
        else:
            return rows

    def load_record(self, record: Record, query: StoreQuery) -> dict:
        """ Convert a record into a result dict: pick attributes, load relations """
        # Pick attributes
        if query.attributes:
            row = {name: _get_field(record, name, where='attributes') for name in query.attributes}
        elif isinstance(record, abc.Mapping):
            row = dict(record)
        else:
            row = dict(vars(record))

        # Load relations
        for relation_name in query.include:
            try:
                loader = self.relations[relation_name]
            except KeyError:
                raise exc.InvalidRelationError(type(self).__name__, relation_name, where='include')

            row[relation_name] = loader(record)

        # Done
        return row

    def compile_filter(self, filter: Any) -> FilterCallable:
        """ Convert a filter into a Python function

        Args:
            filter: A Predicate, a `callable(record) -> bool`, or `None`
        """
        # No filter
        if filter is None:
            return lambda record: True
        # Field expressions
        elif isinstance(filter, Compare):
            return self._compile_compare(filter)
        # Boolean expressions
        elif isinstance(filter, (And, Or)):
            clauses = [self.compile_filter(clause) for clause in filter.clauses]
            combine = all if isinstance(filter, And) else any
            return lambda record: combine(clause(record) for clause in clauses)
        elif isinstance(filter, Not):
            clause = self.compile_filter(filter.clause)
            return lambda record: not clause(record)
        # Native filters: functions
        elif callable(filter) and not isinstance(filter, Predicate):
            return filter
        # Surprised facial expressions
        else:
            raise NotImplementedError(repr(filter))

    def _compile_compare(self, condition: Compare) -> FilterCallable:
        operator_lambda = self.OPERATORS[condition.op]
        field, value = condition.field, condition.value

        def compare(record: Record) -> bool:
            try:
                return operator_lambda(_get_field(record, field, where='filter'), value)
            # Values of incomparable types, e.g. a string vs an int
            except TypeError as e:
                raise exc.InvalidRequestError(f'Filter: cannot compare "{field}" with {value!r}') from e

        return compare

    # Operator implementations
    # Mapping:
    #   Operator: lambda field_value, value
    OPERATORS: dict[Operator, abc.Callable[[Any, Any], bool]] = {
        Operator.EQ: operator.eq,
        Operator.NE: operator.ne,
        Operator.LT: operator.lt,
        Operator.LTE: operator.le,
        Operator.GT: operator.gt,
        Operator.GTE: operator.ge,
        Operator.IN: lambda a, b: a in b,
        Operator.NIN: lambda a, b: a not in b,
    }


def sort_records(records: list[Record], order: abc.Sequence[OrderBy]) -> list[Record]:
    """ Sort records by multiple fields with individual sort directions """
    records = list(records)

    # Python sorting is stable: sort by the least significant field first
    for field, direction in reversed(order):
        records.sort(
            key=lambda record: _get_field(record, field, where='order'),
            reverse=direction == SortingDirection.DESC,
        )

    return records


def _get_field(record: Record, field_name: str, *, where: str) -> Any:
    try:
        return get_record_field(record, field_name)
    except (KeyError, AttributeError) as e:
        raise exc.InvalidColumnError(type(record).__name__, field_name, where=where) from e


# A function that tells whether a record matches the filter
FilterCallable = abc.Callable[[Record], bool]

# A function that loads related data for a record
RelationLoaderCallable = abc.Callable[[Record], Any]
