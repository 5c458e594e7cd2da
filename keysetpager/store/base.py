""" Store: the query interface that the paginator talks to """

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple, Optional, Union, Protocol

from keysetpager.typing import Record


class SortingDirection(Enum):
    ASC = 'ASC'
    DESC = 'DESC'


class OrderBy(NamedTuple):
    """ Ordering clause: a field and a direction """
    field: str
    direction: SortingDirection


@dataclass(frozen=True)
class StoreQuery:
    """ A query that the paginator asks the store to execute

    The store has to:
    * filter records with `filter`
    * order them by `order`
    * return at most `limit` records
    * project `attributes`, load `include`d relations
    """
    # The filter: a Predicate, a store-native filter, or `None` for no filtering
    filter: Any

    # Fields to load. `None`: all fields
    attributes: Optional[tuple[str, ...]]

    # Relations to load along with every record
    include: tuple[str, ...]

    # The max number of records to return
    limit: int

    # Ordering: the list of fields and directions
    order: tuple[OrderBy, ...]

    # Store-specific index hints
    index_hints: Any = None

    # Also count the total number of records matching the filter?
    # If set, the store returns `CountedRows`
    row_count: bool = False


class CountedRows(NamedTuple):
    """ Query result: rows, and the total number of matching records (ignoring the limit) """
    rows: list[Record]
    count: int


# The result of a store query: a list of records, or a `CountedRows` when `row_count` was requested
StoreResult = Union[list[Record], CountedRows]


class Store(Protocol):
    """ The query interface: a collection of records that can execute paginated queries """

    def execute(self, query: StoreQuery) -> StoreResult:
        """ Execute the query and fetch the resulting rows

        Errors are reported as they are: the paginator does not catch them.
        """
