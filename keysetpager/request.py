""" Pagination Request: the input of a paginate() call """

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union, TypedDict

from keysetpager import exc
from keysetpager.predicate import Predicate, parse_filter


class PaginationRequestDict(TypedDict, total=False):
    """ Dict representation of a pagination request """
    where: Any
    attributes: Optional[list[str]]
    include: Optional[list[str]]

    # Pager
    limit: int
    before: Optional[str]
    after: Optional[str]

    # Ordering
    desc: bool
    pagination_field: Optional[str]

    # Extras
    row_count: bool
    index_hints: Any


@dataclass
class PaginationRequest:
    """ Pagination Request: a validated request for a page of records

    Fields are checked when the object is constructed, so an invalid request never reaches the store.

    Raises:
        exc.InvalidRequestError: invalid field values
    """
    # The number of records per page
    limit: int

    # Filter: a Predicate, a MongoDB-style dict, or a store-native filter expression.
    # It's ANDed with the cursor position condition.
    where: Any = None

    # The list of fields to load. Empty: load all fields
    attributes: Optional[tuple[str, ...]] = None

    # The list of relations to load along with every record
    include: Optional[tuple[str, ...]] = None

    # Cursor: load the page that goes before this position. Mutually exclusive with `after`.
    before: Optional[str] = None

    # Cursor: load the page that goes after this position. Mutually exclusive with `before`.
    after: Optional[str] = None

    # Sort in descending order?
    desc: bool = False

    # The field to order by. Default: the primary key
    pagination_field: Optional[str] = None

    # Also count the total number of matching records?
    row_count: bool = False

    # Store-specific index hints, passed to the store as is
    index_hints: Any = None

    def __post_init__(self):
        # limit: a positive integer
        if not isinstance(self.limit, int) or isinstance(self.limit, bool):
            raise exc.InvalidRequestError('"limit" must be an integer')
        if self.limit <= 0:
            raise exc.InvalidRequestError('"limit" must be a positive integer')

        # before, after: strings. An empty string means no cursor
        for name in ('before', 'after'):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise exc.InvalidRequestError(f'"{name}" must be a string')
            setattr(self, name, value or None)

        if self.before is not None and self.after is not None:
            raise exc.InvalidRequestError('"before" and "after" cannot be used together')

        # Booleans
        for name in ('desc', 'row_count'):
            if not isinstance(getattr(self, name), bool):
                raise exc.InvalidRequestError(f'"{name}" must be a boolean')

        # Field names
        if self.pagination_field is not None and not isinstance(self.pagination_field, str):
            raise exc.InvalidRequestError('"pagination_field" must be a string')
        self.attributes = _field_names_tuple('attributes', self.attributes)
        self.include = _field_names_tuple('include', self.include)

        # Filter documents are parsed into predicates
        if isinstance(self.where, dict):
            self.where = parse_filter(self.where)

    @classmethod
    def from_dict(cls, request: PaginationRequestDict):
        """ Construct a Pagination Request from a dict

        Args:
            request: A request dict you might've gotten from the client's request
        """
        if 'limit' not in request:
            raise exc.InvalidRequestError('"limit" is required')

        return cls(
            limit=request['limit'],
            where=request.get('where'),
            attributes=request.get('attributes'),
            include=request.get('include'),
            before=request.get('before'),
            after=request.get('after'),
            desc=request.get('desc', False),
            pagination_field=request.get('pagination_field'),
            row_count=request.get('row_count', False),
            index_hints=request.get('index_hints'),
        )

    @classmethod
    def ensure_request(cls, input: Union[PaginationRequest, PaginationRequestDict]) -> PaginationRequest:
        """ Construct a Pagination Request from any valid input """
        if isinstance(input, PaginationRequest):
            return input
        elif isinstance(input, dict):
            return cls.from_dict(input)
        else:
            raise exc.InvalidRequestError(f'Pagination request must be an object, "{type(input).__name__}" given')

    def dict(self) -> PaginationRequestDict:
        """ Convert the request back into a dict """
        return PaginationRequestDict(
            where=self.where.export() if isinstance(self.where, Predicate) else self.where,
            attributes=list(self.attributes) if self.attributes is not None else None,
            include=list(self.include) if self.include is not None else None,
            limit=self.limit,
            before=self.before,
            after=self.after,
            desc=self.desc,
            pagination_field=self.pagination_field,
            row_count=self.row_count,
            index_hints=self.index_hints,
        )


def _field_names_tuple(name: str, value: Optional[Union[list, tuple]]) -> Optional[tuple[str, ...]]:
    """ Validate a list of field names and convert it into a tuple """
    if value is None:
        return None

    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise exc.InvalidRequestError(f'"{name}" must be an array of strings')

    return tuple(value)
