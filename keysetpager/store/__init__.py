""" Stores: collections of records that the paginator can query

A store receives a `StoreQuery` (filter, order, limit, attributes, relations) and returns rows.
Every store lowers predicates into its own native filters.
"""

from .base import Store, StoreQuery, StoreResult, CountedRows, OrderBy, SortingDirection
from .memory import MemoryStore
from .sacore import SAStore, IndexHint
