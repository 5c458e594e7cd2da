import dataclasses
from types import SimpleNamespace

import pytest

from keysetpager import exc
from keysetpager import Paginator, PaginatorSettings, PaginationRequest, Page
from keysetpager import MemoryStore, StoreQuery
from keysetpager.cursor import SingleKey, CompositeKey, encode_cursor, decode_cursor
from keysetpager.predicate import Compare, Operator, and_
from keysetpager.store import OrderBy, SortingDirection


def test_paginate_ties():
    """ Test: paginate by a field that has duplicate values """
    paginator = Paginator(MemoryStore(SCORES))

    # Page 1
    page1 = paginator.paginate(dict(limit=2, pagination_field='score'))
    assert ids(page1) == [1, 2]
    assert (page1.has_previous, page1.has_next) == (False, True)
    assert decode_cursor(page1.before) == CompositeKey(10, 1)
    assert decode_cursor(page1.after) == CompositeKey(10, 2)

    # Page 2: the record with the same score, but a greater id, is not skipped
    page2 = paginator.paginate(dict(limit=2, pagination_field='score', after=page1.after))
    assert ids(page2) == [3]
    assert (page2.has_previous, page2.has_next) == (True, False)

    # Back to page 1
    page1_again = paginator.paginate(dict(limit=2, pagination_field='score', before=page2.before))
    assert ids(page1_again) == [1, 2]
    assert (page1_again.has_previous, page1_again.has_next) == (False, True)
    assert page1_again.before == page1.before
    assert page1_again.after == page1.after


def test_paginate_by_primary_key():
    """ Test: paginate by the unique key: single-value cursors """
    paginator = Paginator(MemoryStore(SCORES))

    page1 = paginator.paginate(dict(limit=1))
    assert ids(page1) == [1]
    assert decode_cursor(page1.after) == SingleKey(1)

    page2 = paginator.paginate(dict(limit=1, after=page1.after))
    assert ids(page2) == [2]
    assert (page2.has_previous, page2.has_next) == (True, True)


@pytest.mark.parametrize(('desc', 'expected_pages'), [
    (False, [[1, 2], [3, 4], [5]]),
    (True, [[5, 4], [3, 2], [1]]),
])
def test_paginate_walk_forward_and_back(desc: bool, expected_pages: list[list[int]]):
    """ Test: walk all pages forward, then back, and see the same pages """
    paginator = Paginator(MemoryStore(MORE_SCORES))

    # Forward
    forward: list[Page] = []
    after = None
    while True:
        page = paginator.paginate(dict(limit=2, pagination_field='score', desc=desc, after=after))
        forward.append(page)
        if not page.has_next:
            break
        after = page.after

    assert [ids(page) for page in forward] == expected_pages
    assert forward[0].has_previous is False
    assert all(page.has_previous for page in forward[1:])

    # Backward
    backward: list[Page] = [forward[-1]]
    while backward[-1].has_previous:
        page = paginator.paginate(dict(limit=2, pagination_field='score', desc=desc, before=backward[-1].before))
        backward.append(page)

    assert [ids(page) for page in reversed(backward)] == expected_pages
    assert all(page.has_next for page in backward[1:])


def test_paginate_empty():
    """ Test: no records, no cursors """
    page = Paginator(MemoryStore([])).paginate(dict(limit=10))

    assert page == Page(results=[], count=None, has_next=False, has_previous=False, before=None, after=None)
    assert page.export() == {
        'results': [],
        'count': None,
        'cursors': {'has_next': False, 'has_previous': False, 'before': None, 'after': None},
    }


@pytest.mark.parametrize(('n', 'expected_has_next'), [
    (2, False),  # exactly `limit` rows
    (3, True),  # `limit + 1` rows
])
def test_paginate_overfetch(n: int, expected_has_next: bool):
    """ Test: one more row is loaded to tell whether there's a next page """
    store = RecordingStore(SCORES[:n])
    page = Paginator(store).paginate(dict(limit=2))

    assert ids(page) == [1, 2]
    assert page.has_next == expected_has_next
    assert store.queries[0].limit == 3


def test_paginate_query():
    """ Test: the query that the store receives """
    store = RecordingStore(MORE_SCORES)
    paginator = Paginator(store)

    # Sorted by the pagination field and the unique key
    # Attributes: the pagination field and the unique key are always loaded
    paginator.paginate(dict(limit=2, pagination_field='score', desc=True, attributes=['name'], where={'score': {'$gte': 10}}))
    assert store.queries[-1] == StoreQuery(
        filter=Compare('score', Operator.GTE, 10),
        attributes=('name', 'score', 'id'),
        include=(),
        limit=3,
        order=(OrderBy('score', SortingDirection.DESC), OrderBy('id', SortingDirection.DESC)),
    )

    # "after": continue in the same direction
    paginator.paginate(dict(limit=2, pagination_field='score', after=encode_cursor(CompositeKey(10, 2))))
    query = store.queries[-1]
    assert query.order == (OrderBy('score', SortingDirection.ASC), OrderBy('id', SortingDirection.ASC))
    assert query.filter.clauses[0] == Compare('score', Operator.GT, 10)

    # "before": walk in the reverse direction
    paginator.paginate(dict(limit=2, pagination_field='score', before=encode_cursor(CompositeKey(10, 2))))
    query = store.queries[-1]
    assert query.order == (OrderBy('score', SortingDirection.DESC), OrderBy('id', SortingDirection.DESC))
    assert query.filter.clauses[0] == Compare('score', Operator.LT, 10)

    # "before" + "desc": walk in the ascending order
    paginator.paginate(dict(limit=2, desc=True, before=encode_cursor(SingleKey(3))))
    query = store.queries[-1]
    assert query.order == (OrderBy('id', SortingDirection.ASC),)
    assert query.filter == Compare('id', Operator.GT, 3)

    # Only one query per page
    assert len(store.queries) == 4


@pytest.mark.parametrize(('request_dict',), [
    (dict(limit=0),),
    (dict(limit=1, before='a', after='b'),),
    (dict(limit=1, after='!!!'),),
    # Cursor shape must fit the pagination field
    (dict(limit=1, after=encode_cursor(CompositeKey(10, 2))),),
    (dict(limit=1, pagination_field='score', after=encode_cursor(SingleKey(2))),),
])
def test_paginate_invalid_request(request_dict: dict):
    """ Test: invalid requests never reach the store """
    store = RecordingStore(SCORES)

    with pytest.raises(exc.InvalidRequestError):
        Paginator(store).paginate(request_dict)

    assert store.queries == []


def test_paginate_store_error():
    """ Test: store errors are propagated as they are """
    class FailingStore:
        def execute(self, query: StoreQuery):
            raise ConnectionError('database is gone')

    with pytest.raises(ConnectionError):
        Paginator(FailingStore()).paginate(dict(limit=1))

    # Unknown fields
    with pytest.raises(exc.InvalidColumnError):
        Paginator(MemoryStore(SCORES)).paginate(dict(limit=1, pagination_field='nope'))


def test_paginate_incomparable_filter():
    """ Test: comparing a field to a value of another type is a request error """
    paginator = Paginator(MemoryStore(SCORES))

    with pytest.raises(exc.InvalidRequestError) as e:
        paginator.paginate(dict(limit=1, where={'score': {'$gt': 'x'}}))
    assert 'cannot compare "score"' in str(e.value)

    # A cursor from another collection: string values for an int field
    with pytest.raises(exc.InvalidRequestError):
        paginator.paginate(dict(limit=1, pagination_field='score', after=encode_cursor(CompositeKey('x', 'y'))))


def test_paginate_row_count():
    """ Test: count matching records """
    paginator = Paginator(MemoryStore(MORE_SCORES))

    page1 = paginator.paginate(dict(limit=2, row_count=True))
    assert page1.count == 5

    # The count covers records beyond the cursor
    page2 = paginator.paginate(dict(limit=2, row_count=True, after=page1.after))
    assert page2.count == 3

    # The filter is applied
    page = paginator.paginate(dict(limit=2, row_count=True, where={'score': 20}))
    assert page.count == 2

    # Not requested
    assert paginator.paginate(dict(limit=2)).count is None


def test_paginate_settings():
    """ Test: settings: unique key, max limit, query customization """
    # max_limit
    store = RecordingStore(MORE_SCORES)
    page = Paginator(store, PaginatorSettings(max_limit=2)).paginate(dict(limit=10))
    assert ids(page) == [1, 2]
    assert store.queries[0].limit == 3

    # primary_key_field
    records = [{'pk': 1, 'score': 10}, {'pk': 2, 'score': 10}]
    page = Paginator(MemoryStore(records), PaginatorSettings(primary_key_field='pk')).paginate(dict(limit=1, pagination_field='score'))
    assert page.results == [{'pk': 1, 'score': 10}]
    assert decode_cursor(page.after) == CompositeKey(10, 1)

    # customize_query()
    class VisibleOnlySettings(PaginatorSettings):
        def customize_query(self, paginator: Paginator, query: StoreQuery) -> StoreQuery:
            return dataclasses.replace(query, filter=and_(query.filter, Compare('score', Operator.NE, 20)))

    page = Paginator(MemoryStore(MORE_SCORES), VisibleOnlySettings()).paginate(dict(limit=10))
    assert ids(page) == [1, 2, 5]


def test_paginate_records():
    """ Test: records as objects, attributes, relations """
    records = [
        SimpleNamespace(id=1, score=10, name='a'),
        SimpleNamespace(id=2, score=20, name='b'),
    ]
    store = MemoryStore(records, relations={
        'double': lambda record: record.score * 2,
    })
    paginator = Paginator(store)

    # Objects become dicts
    page = paginator.paginate(PaginationRequest(limit=1))
    assert page.results == [{'id': 1, 'score': 10, 'name': 'a'}]

    # Attributes, include
    page = paginator.paginate(PaginationRequest(limit=2, attributes=('name',), include=('double',), desc=True))
    assert page.results == [
        {'name': 'b', 'id': 2, 'double': 40},
        {'name': 'a', 'id': 1, 'double': 20},
    ]

    # Unknown relation
    with pytest.raises(exc.InvalidRelationError):
        paginator.paginate(PaginationRequest(limit=1, include=('nope',)))


def test_paginate_native_filter():
    """ Test: store-native filters are passed through """
    paginator = Paginator(MemoryStore(MORE_SCORES))

    page = paginator.paginate(PaginationRequest(limit=10, where=lambda record: record['id'] % 2 == 0))
    assert ids(page) == [2, 4]


class RecordingStore(MemoryStore):
    """ MemoryStore that remembers every query it was given """

    def __init__(self, records, **kwargs):
        super().__init__(records, **kwargs)
        self.queries: list[StoreQuery] = []

    def execute(self, query: StoreQuery):
        self.queries.append(query)
        return super().execute(query)


def ids(page: Page) -> list[int]:
    return [row['id'] for row in page.results]


SCORES = [
    {'id': 1, 'score': 10, 'name': 'a'},
    {'id': 2, 'score': 10, 'name': 'b'},
    {'id': 3, 'score': 20, 'name': 'c'},
]

MORE_SCORES = [
    {'id': 1, 'score': 10, 'name': 'a'},
    {'id': 2, 'score': 10, 'name': 'b'},
    {'id': 3, 'score': 20, 'name': 'c'},
    {'id': 4, 'score': 20, 'name': 'd'},
    {'id': 5, 'score': 30, 'name': 'e'},
]
