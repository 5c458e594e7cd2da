""" SAStore: paginate SqlAlchemy models with Core statements """

from __future__ import annotations

import logging
import re
from collections import abc, defaultdict
from typing import Any, NamedTuple, Optional

import sqlalchemy as sa

from keysetpager import exc
from keysetpager.predicate import Compare, And, Or, Not, Operator
from keysetpager.typing import SAModelOrAlias, SARowDict
from keysetpager.sainfo.columns import resolve_column_by_name, column_attribute_names, column_attribute_name
from keysetpager.sainfo.primary_key import primary_key_columns
from keysetpager.sainfo.relations import (
    resolve_relation_by_name,
    is_simple_relation, is_array, target_model, local_remote_columns,
)

from .base import StoreQuery, StoreResult, CountedRows, OrderBy, SortingDirection


logger = logging.getLogger(__name__)


class SAStore:
    """ Store: an SqlAlchemy model, queried with Core statements

    It builds a `SELECT` statement against the model, executes it, and returns rows as dicts.
    Related objects from "include" are loaded with one extra `SELECT ... WHERE fk IN (...)` per relation.

    Example:
        with engine.connect() as connection:
            paginator = Paginator(SAStore(connection, models.User))
            page = paginator.paginate(dict(limit=10))
    """
    # The connection to execute statements with
    connection: sa.engine.Connection

    # The target model to execute queries against
    Model: SAModelOrAlias

    def __init__(self, connection: sa.engine.Connection, Model: SAModelOrAlias):
        self.connection = connection
        self.Model = Model

    __slots__ = 'connection', 'Model'

    def execute(self, query: StoreQuery) -> StoreResult:
        # Load rows
        stmt = self.statement(query)
        logger.debug('SAStore query: %s', stmt)

        res: sa.engine.CursorResult = self.connection.execute(stmt)
        rows = [dict(row) for row in res.mappings()]

        # Load relations
        for relation_name in query.include:
            self.load_relation(relation_name, rows)

        # Done
        if query.row_count:
            return CountedRows(rows=rows, count=self.count(query))
        else:
            return rows

    def statement(self, query: StoreQuery) -> sa.sql.Select:
        """ Build an SQL SELECT statement for the query

        Relations are not included: they're loaded by separate statements.
        """
        # Columns
        stmt = sa.select(*self.compile_columns(query)).select_from(self.Model)

        # Filter
        condition = self.compile_filter(query.filter)
        if condition is not None:
            stmt = stmt.where(condition)

        # Sort
        stmt = stmt.order_by(*self.compile_order(query.order))

        # Index hints
        # NOTE: SqlAlchemy keeps one hint per table, so all hints are rendered into one
        hints = parse_index_hints(query.index_hints)
        if hints:
            stmt = stmt.with_hint(sa.inspect(self.Model).selectable, ' '.join(hint.render() for hint in hints), dialect_name='mysql')

        # Limit
        return stmt.limit(query.limit)

    def count(self, query: StoreQuery) -> int:
        """ Execute the query and return the number of matching rows only """
        stmt = sa.select(sa.func.count()).select_from(self.Model)

        # Apply everything that may change the number of matching rows
        condition = self.compile_filter(query.filter)
        if condition is not None:
            stmt = stmt.where(condition)

        logger.debug('SAStore count: %s', stmt)

        res: sa.engine.CursorResult = self.connection.execute(stmt)
        return res.scalar()  # type: ignore[return-value]

    # region Columns

    def compile_columns(self, query: StoreQuery) -> list[sa.sql.ColumnElement]:
        """ Get the list of columns to select

        Selected are: the requested attributes (or all columns), and foreign keys needed to load relations
        """
        names = list(query.attributes or column_attribute_names(self.Model))

        # Relations need their local keys to be loaded
        for relation_name in query.include:
            local_key = self._relation_local_key(relation_name)
            if local_key not in names:
                names.append(local_key)

        return [
            resolve_column_by_name(name, self.Model, where='attributes').label(name)
            for name in names
        ]

    # endregion

    # region Filter

    def compile_filter(self, filter: Any) -> Optional[sa.sql.ColumnElement]:
        """ Generate an SQL filter expression

        Args:
            filter: A Predicate, an SqlAlchemy expression, or `None`
        """
        # No filter
        if filter is None:
            return None
        # Field expressions
        elif isinstance(filter, Compare):
            column = resolve_column_by_name(filter.field, self.Model, where='filter')
            return self.OPERATORS[filter.op](column, filter.value)
        # Boolean expressions
        elif isinstance(filter, And):
            if not filter.clauses:
                return sa.true()
            criteria = [self.compile_filter(clause) for clause in filter.clauses]
            cc = sa.and_(*criteria)
            return cc.self_group() if len(criteria) > 1 else cc  # type: ignore[return-value]
        elif isinstance(filter, Or):
            if not filter.clauses:
                return sa.false()
            criteria = [self.compile_filter(clause) for clause in filter.clauses]
            cc = sa.or_(*criteria)
            return cc.self_group() if len(criteria) > 1 else cc  # type: ignore[return-value]
        elif isinstance(filter, Not):
            return sa.not_(self.compile_filter(filter.clause))
        # Native filters: SQL expressions
        elif isinstance(filter, sa.sql.ClauseElement):
            return filter  # type: ignore[return-value]
        # Surprised facial expressions
        else:
            raise NotImplementedError(repr(filter))

    # Operators
    # Mapping:
    #   Operator: lambda column, value
    OPERATORS: dict[Operator, abc.Callable[[sa.sql.ColumnElement, Any], sa.sql.ColumnElement]] = {
        Operator.EQ: lambda col, val: col == val,
        # "IS DISTINCT FROM" is a better rendering that considers NULLs properly
        Operator.NE: lambda col, val: col.is_distinct_from(val),
        Operator.LT: lambda col, val: col < val,
        Operator.LTE: lambda col, val: col <= val,
        Operator.GT: lambda col, val: col > val,
        Operator.GTE: lambda col, val: col >= val,
        Operator.IN: lambda col, val: col.in_(val),
        Operator.NIN: lambda col, val: col.not_in(val),
    }

    # endregion

    # region Sort

    def compile_order(self, order: abc.Iterable[OrderBy]) -> abc.Iterator[sa.sql.ColumnElement]:
        """ Generate the list of columns, sorted asc()/desc(), to be used in the query """
        for field, direction in order:
            column = resolve_column_by_name(field, self.Model, where='order')

            if direction == SortingDirection.DESC:
                yield column.desc()
            else:
                yield column.asc()

    # endregion

    # region Relations

    def load_relation(self, relation_name: str, rows: list[SARowDict]):
        """ Load related objects and put them into `rows` under `relation_name`

        One-to-many relations get a list of dicts, many-to-one relations get a dict or `None`
        """
        attribute = self._resolve_relation(relation_name)
        local, remote = local_remote_columns(attribute)
        local_key = column_attribute_name(self.Model, local)

        Target = target_model(attribute)
        remote_key = column_attribute_name(Target, remote)

        # Load related rows, group them by the remote key
        related: dict[Any, list[SARowDict]] = defaultdict(list)
        keys = {row[local_key] for row in rows if row[local_key] is not None}
        if keys:
            stmt = (
                sa.select(*(getattr(Target, name).label(name) for name in column_attribute_names(Target)))
                .where(getattr(Target, remote_key).in_(sorted(keys)))
                .order_by(*primary_key_columns(Target))
            )
            logger.debug('SAStore relation %s: %s', relation_name, stmt)

            res: sa.engine.CursorResult = self.connection.execute(stmt)
            for related_row in res.mappings():
                related[related_row[remote_key]].append(dict(related_row))

        # Populate rows
        uselist = is_array(attribute)
        for row in rows:
            found = related.get(row[local_key], [])
            if uselist:
                row[relation_name] = found
            else:
                row[relation_name] = found[0] if found else None

    def _relation_local_key(self, relation_name: str) -> str:
        local, remote = local_remote_columns(self._resolve_relation(relation_name))
        return column_attribute_name(self.Model, local)

    def _resolve_relation(self, relation_name: str):
        attribute = resolve_relation_by_name(relation_name, self.Model, where='include')

        if not is_simple_relation(attribute):
            raise NotImplementedError(
                f'Relation "{relation_name}" cannot be included: '
                f'only one-to-many and many-to-one relations over a single column are supported'
            )

        return attribute

    # endregion


class IndexHint(NamedTuple):
    """ MySQL index hint

    Example:
        IndexHint('USE', ('ix_users_login',))  # USE INDEX (ix_users_login)
    """
    # Hint type: USE, FORCE, IGNORE
    type: str

    # Index names
    values: tuple[str, ...]

    def render(self) -> str:
        return f'{self.type} INDEX ({", ".join(self.values)})'


def parse_index_hints(index_hints: Optional[abc.Iterable[Any]]) -> list[IndexHint]:
    """ Parse index hints: `IndexHint` objects, or dicts like {"type": "USE", "values": ["index_name"]}

    Raises:
        exc.InvalidRequestError: malformed hint
    """
    if not index_hints:
        return []

    hints = []
    for hint in index_hints:
        if isinstance(hint, dict):
            hint = IndexHint(type=hint.get('type'), values=tuple(hint.get('values') or ()))  # type: ignore[arg-type]

        if not isinstance(hint, IndexHint) or hint.type not in INDEX_HINT_TYPES or not hint.values:
            raise exc.InvalidRequestError(f'Invalid index hint: {hint!r}')

        # Index names go into the SQL text as is
        for name in hint.values:
            if not isinstance(name, str) or not INDEX_NAME_RX.fullmatch(name):
                raise exc.InvalidRequestError(f'Invalid index name: {name!r}')

        hints.append(hint)

    return hints


INDEX_HINT_TYPES = frozenset(('USE', 'FORCE', 'IGNORE'))

# Index names: letters, digits, underscores
INDEX_NAME_RX = re.compile(r'\w+', re.ASCII)
