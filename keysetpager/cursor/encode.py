from __future__ import annotations

import base64
import datetime
import decimal
import json
import uuid
from typing import Optional

from keysetpager import exc

from .position import Position, position_from_list


def encode_cursor(position: Position) -> str:
    """ Encode a Position as an opaque cursor

    The position is dumped as a compact JSON array and wrapped into URL-safe base64 without padding.
    Same position, same cursor.
    """
    data = json.dumps(position.export(), default=_json_default, separators=(',', ':'))
    return base64.urlsafe_b64encode(data.encode()).decode().rstrip('=')


def decode_cursor(cursor: Optional[str]) -> Optional[Position]:
    """ Decode an opaque cursor into a Position

    Returns:
        The position, or `None` when no cursor is given

    Raises:
        exc.CursorDecodeError: all sorts of errors related to bad cursor
    """
    if cursor is None:
        return None

    if not isinstance(cursor, str):
        raise exc.CursorDecodeError(repr(cursor), 'cursor must be a string')

    # A position is one or two scalars: huge tokens are refused before parsing
    if len(cursor) > MAX_CURSOR_LENGTH:
        raise exc.CursorDecodeError(cursor[:32] + '...', f'cursor is longer than {MAX_CURSOR_LENGTH} characters')

    try:
        padded = cursor + '=' * (-len(cursor) % 4)
        data = base64.b64decode(padded.encode('ascii'), altchars=b'-_', validate=True)  # UnicodeEncodeError, binascii.Error
        values = json.loads(data.decode(), object_hook=_json_object_hook)  # UnicodeDecodeError, json.decoder.JSONDecodeError, RecursionError
        return position_from_list(values)  # ValueError
    except (ValueError, decimal.InvalidOperation, RecursionError) as e:
        raise exc.CursorDecodeError(cursor, str(e)) from e


def _json_default(value):
    """ JSON encoder for values that have no JSON type: wrap them into a tagged object """
    for tag, type_, dump, load in TAGGED_TYPES:
        if isinstance(value, type_):
            return {tag: dump(value)}

    raise TypeError(f'Object of type {type(value).__name__} cannot be stored in a cursor')


def _json_object_hook(obj: dict):
    """ JSON decoder for tagged objects """
    if len(obj) == 1:
        (tag, value), = obj.items()
        if tag in TAGGED_LOADERS and isinstance(value, str):
            return TAGGED_LOADERS[tag](value)  # ValueError, decimal.InvalidOperation

    raise ValueError(f'unexpected object in position: {obj!r}')


# Tagged types: (tag, type, dump function, load function)
# NOTE: order matters: `datetime` is a subclass of `date`, so it goes first
TAGGED_TYPES = (
    ('$datetime', datetime.datetime, datetime.datetime.isoformat, datetime.datetime.fromisoformat),
    ('$date', datetime.date, datetime.date.isoformat, datetime.date.fromisoformat),
    ('$time', datetime.time, datetime.time.isoformat, datetime.time.fromisoformat),
    ('$decimal', decimal.Decimal, str, decimal.Decimal),
    ('$uuid', uuid.UUID, str, uuid.UUID),
)

TAGGED_LOADERS = {tag: load for tag, type_, dump, load in TAGGED_TYPES}

# The max length of a cursor token
MAX_CURSOR_LENGTH = 4096
