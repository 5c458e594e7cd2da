from .paginator import Paginator
from .settings import PaginatorSettings
from .request import PaginationRequest, PaginationRequestDict
from .page import Page
from .store import Store, StoreQuery, CountedRows, MemoryStore, SAStore, IndexHint
from .cursor import SingleKey, CompositeKey, encode_cursor, decode_cursor
from .predicate import Compare, And, Or, Not, Operator, parse_filter

from . import exc
