""" Cursors: opaque tokens that point at a record's position in the sort order """

from .position import Position, SingleKey, CompositeKey
from .position import position_from_list, position_from_record, get_record_field
from .encode import encode_cursor, decode_cursor
