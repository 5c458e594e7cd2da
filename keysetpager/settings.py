from __future__ import annotations

import dataclasses
from typing import Optional, TYPE_CHECKING


if TYPE_CHECKING:
    from .paginator import Paginator
    from .store import StoreQuery


@dataclasses.dataclass
class PaginatorSettings:
    """ Settings for Paginator

    One object per collection: defines its unique key, limits, and lets you customize queries
    """
    # The unique key field. Used to break ties when the pagination field has duplicate values
    primary_key_field: str = 'id'

    # The max number of records per page, regardless of the limit
    max_limit: Optional[int] = None

    def __post_init__(self):
        assert self.max_limit is None or self.max_limit > 0, '`max_limit` must be a positive integer'

    # ### Callbacks for Paginator
    # Paginator will use these methods to apply the settings

    def get_final_limit(self, limit: int) -> int:
        """ Callback that fine-tunes the `limit` of a request by applying the max limit """
        if self.max_limit:
            limit = min(limit, self.max_limit)

        return limit

    def customize_query(self, paginator: Paginator, query: StoreQuery) -> StoreQuery:
        """ Callback that customizes the query right before it's given to the store

        Default behavior: none
        You can override this method for custom behavior.
        Use `dataclasses.replace()` to modify the query.
        """
        return query
