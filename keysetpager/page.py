from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from keysetpager.typing import Record


@dataclass(frozen=True)
class Page:
    """ A page of records, with cursors to navigate to the neighboring pages """
    # Records on this page, in the requested order
    results: list[Record]

    # Number of records that match the filter and lie beyond the cursor, regardless of the limit.
    # Only available when requested with `row_count`
    count: Optional[int]

    # Is there a page after this one?
    has_next: bool

    # Is there a page before this one?
    has_previous: bool

    # Cursor of the first record. Feed it to "before" to get the previous page
    before: Optional[str]

    # Cursor of the last record. Feed it to "after" to get the next page
    after: Optional[str]

    def export(self) -> dict:
        """ Export the page as a JSON-friendly dict """
        return {
            'results': self.results,
            'count': self.count,
            'cursors': {
                'has_next': self.has_next,
                'has_previous': self.has_previous,
                'before': self.before,
                'after': self.after,
            },
        }
