import json
from typing import Optional, Any

import fastapi

from keysetpager import PaginationRequest
from keysetpager import exc


def pagination_request(*,
        limit: int = fastapi.Query(
            ...,
            title='Pagination. The number of items per page.',
        ),
        before: Optional[str] = fastapi.Query(
            None,
            title='Pagination. Cursor: load the page before this one.',
        ),
        after: Optional[str] = fastapi.Query(
            None,
            title='Pagination. Cursor: load the page after this one.',
        ),
        desc: bool = fastapi.Query(
            False,
            title='Sort in descending order?',
        ),
        pagination_field: Optional[str] = fastapi.Query(
            None,
            title='The field to sort and paginate by.',
        ),
        where: Optional[str] = fastapi.Query(
            None,
            title='Filter criteria.',
            description='MongoDB format. Example: `{ "age": { "$gt": 18 } }`. JSON.',
        ),
        attributes: Optional[str] = fastapi.Query(
            None,
            title='The list of fields to select.',
            description='Example: `["id", "login"]`. JSON.',
        ),
        include: Optional[str] = fastapi.Query(
            None,
            title='The list of relations to load.',
            description='Example: `["articles"]`. JSON.',
        ),
        row_count: bool = fastapi.Query(
            False,
            title='Also count the total number of matching items?',
        ),
) -> PaginationRequest:
    """ Get the Pagination Request from the request parameters

    Example:
        /api/?limit=10&pagination_field=ctime&desc=true&where={"age": {"$gt": 18}}

    Raises:
        exc.InvalidRequestError
    """
    try:
        request_dict = dict(
            limit=limit,
            before=before,
            after=after,
            desc=desc,
            pagination_field=pagination_field,
            where=parse_json_argument('where', where),
            attributes=parse_json_argument('attributes', attributes),
            include=parse_json_argument('include', include),
            row_count=row_count,
        )
    except ArgumentValueError as e:
        raise exc.InvalidRequestError(f'`{e.argument_name}` parsing failed: {e}') from e

    # Parse
    return PaginationRequest.from_dict(request_dict)  # type: ignore[arg-type]


class ArgumentValueError(ValueError):
    """ Request argument parse error """
    def __init__(self, argument_name: str, error: str):
        self.argument_name = argument_name
        super().__init__(error)


def parse_json_argument(name: str, value: Optional[str]) -> Any:
    """ Parse a flattened request field as JSON """
    # None passthrough
    if value is None:
        return None

    # Parse the string
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ArgumentValueError(name, f'Malformed JSON: {e}')
