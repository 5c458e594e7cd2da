""" Paginator: keyset pagination over a store """

from __future__ import annotations

import logging
from typing import Optional, Union

from keysetpager import exc
from keysetpager.cursor import Position, SingleKey, CompositeKey
from keysetpager.cursor import encode_cursor, decode_cursor, position_from_record
from keysetpager.page import Page
from keysetpager.predicate import Operator, and_, position_predicate
from keysetpager.request import PaginationRequest, PaginationRequestDict
from keysetpager.settings import PaginatorSettings
from keysetpager.store import Store, StoreQuery, OrderBy, SortingDirection
from keysetpager.typing import Record


logger = logging.getLogger(__name__)


class Paginator:
    """ Paginator: loads pages of records from a store using keyset pagination

    Every page is loaded by a single query: "records strictly beyond the cursor, ordered, limited".
    Records are ordered by the pagination field, and, if it's not the unique key, by the unique key as well:
    this breaks ties between records that have the same value.

    One more record is loaded than requested: if it's there, there is more data in that direction.

    Example:
        paginator = Paginator(SAStore(connection, models.Article))

        page = paginator.paginate(dict(limit=10, pagination_field='ctime', desc=True))
        next_page = paginator.paginate(dict(limit=10, pagination_field='ctime', desc=True, after=page.after))
        prev_page = paginator.paginate(dict(limit=10, pagination_field='ctime', desc=True, before=next_page.before))
    """
    # The store to load records from
    store: Store

    # Paginator settings
    settings: PaginatorSettings

    def __init__(self, store: Store, settings: PaginatorSettings = None):
        """ Prepare to paginate a store

        Args:
            store: The collection of records to paginate
            settings: Settings: the unique key field, etc
        """
        self.store = store
        self.settings = settings or self.DEFAULT_SETTINGS

    __slots__ = 'store', 'settings'

    # Default settings object
    DEFAULT_SETTINGS = PaginatorSettings()

    @property
    def primary_key_field(self) -> str:
        return self.settings.primary_key_field

    def paginate(self, request: Union[PaginationRequest, PaginationRequestDict]) -> Page:
        """ Load a page of records

        Args:
            request: The Pagination Request, or its dict

        Raises:
            exc.InvalidRequestError: Invalid request (both cursors given, wrong limit, etc)
            exc.CursorDecodeError: Malformed "before" or "after" cursor
            Exception: whatever the store raises is propagated as is
        """
        # Parse the request
        request = PaginationRequest.ensure_request(request)
        limit = self.settings.get_final_limit(request.limit)
        pagination_field = request.pagination_field or self.primary_key_field

        # Decode cursors. At most one is given
        before = self.decode_position(request.before, pagination_field)
        after = self.decode_position(request.after, pagination_field)

        # To load the page that goes before the cursor, we walk the records in the reverse order.
        # The rows are then reversed back into the requested order.
        cursor_order_is_desc = (not request.desc) if before is not None else request.desc

        logger.debug(
            f'Paginate: limit={limit} field={pagination_field!r} desc={request.desc} '
            f'before={before is not None} after={after is not None}'
        )

        # Query
        query = self.build_query(
            request,
            limit=limit,
            pagination_field=pagination_field,
            position=before if before is not None else after,
            cursor_order_is_desc=cursor_order_is_desc,
        )
        query = self.settings.customize_query(self, query)

        # Fetch
        # Only one query per page. Store errors are not handled.
        count: Optional[int]
        result = self.store.execute(query)
        if request.row_count:
            rows, count = result  # type: ignore[misc]
        else:
            rows, count = result, None  # type: ignore[assignment]

        # Make a page
        page = self.make_page(
            list(rows),
            count=count,
            limit=limit,
            pagination_field=pagination_field,
            has_before=before is not None,
            has_after=after is not None,
        )

        logger.debug(f'Paginate: {len(page.results)} rows, has_next={page.has_next} has_previous={page.has_previous}')
        return page

    def decode_position(self, cursor: Optional[str], pagination_field: str) -> Optional[Position]:
        """ Decode a cursor and make sure it fits the pagination field

        A cursor made while paginating by the unique key has one value;
        a cursor made while paginating by any other field has two values.

        Raises:
            exc.CursorDecodeError
        """
        position = decode_cursor(cursor)
        if position is None:
            return None

        expected_type = SingleKey if pagination_field == self.primary_key_field else CompositeKey
        if not isinstance(position, expected_type):
            raise exc.CursorDecodeError(cursor, f'the cursor does not fit pagination by {pagination_field!r}')  # type: ignore[arg-type]

        return position

    def build_query(self, request: PaginationRequest, *, limit: int, pagination_field: str, position: Optional[Position], cursor_order_is_desc: bool) -> StoreQuery:
        """ Build a query for the store

        Args:
            request: The request
            limit: The final limit
            pagination_field: The field to order by
            position: The decoded cursor, if any
            cursor_order_is_desc: The direction to walk the records in
        """
        primary_key_field = self.primary_key_field
        paginated_by_key = pagination_field == primary_key_field

        # Filter: records beyond the position, AND the user filter
        if position is not None:
            op = Operator.LT if cursor_order_is_desc else Operator.GT
            position_filter = position_predicate(position, op, pagination_field, primary_key_field)
        else:
            position_filter = None

        # Ordering.
        # The unique key goes in the same direction: otherwise, the filter would skip over ties
        direction = SortingDirection.DESC if cursor_order_is_desc else SortingDirection.ASC
        order = [OrderBy(pagination_field, direction)]
        if not paginated_by_key:
            order.append(OrderBy(primary_key_field, direction))

        # Attributes: cursors are made from the pagination field and the unique key, so they're always loaded
        attributes = request.attributes
        if attributes:
            attributes = attributes + tuple(
                name
                for name in dict.fromkeys((pagination_field, primary_key_field))
                if name not in attributes
            )

        return StoreQuery(
            filter=and_(position_filter, request.where),
            attributes=attributes or None,
            include=request.include or (),
            # Load one more row to check if there's more data
            limit=limit + 1,
            order=tuple(order),
            index_hints=request.index_hints,
            row_count=request.row_count,
        )

    def make_page(self, rows: list[Record], *, count: Optional[int], limit: int, pagination_field: str, has_before: bool, has_after: bool) -> Page:
        """ Inspect the result rows and make a page

        Args:
            rows: The rows loaded by the store: up to `limit + 1`
            count: The total count of rows, if available
            limit: The final limit
            pagination_field: The field to order by
            has_before: Was the "before" cursor used?
            has_after: Was the "after" cursor used?
        """
        # Have more rows?
        # We've loaded one extra row. Now remove it.
        has_more = len(rows) > limit
        if has_more:
            rows = rows[:limit]

        # The "before" page was loaded in the reverse order
        if has_before:
            rows.reverse()

        # If we have a cursor, it must have come from the page on that side
        has_next = has_before or has_more
        has_previous = has_after or (has_before and has_more)

        # Cursors: first and last rows
        if rows:
            before_cursor = encode_cursor(position_from_record(rows[0], pagination_field, self.primary_key_field))
            after_cursor = encode_cursor(position_from_record(rows[-1], pagination_field, self.primary_key_field))
        else:
            before_cursor = after_cursor = None

        # Done
        return Page(
            results=rows,
            count=count,
            has_next=has_next,
            has_previous=has_previous,
            before=before_cursor,
            after=after_cursor,
        )
