""" Position: the location of a record in the sort order """

from __future__ import annotations

import datetime
import decimal
import uuid
from collections import abc
from typing import NamedTuple, Union

from keysetpager.typing import Record, Scalar


class SingleKey(NamedTuple):
    """ Position of a record when the pagination field is the unique key itself """
    # Value of the pagination field
    value: Scalar

    def export(self) -> list:
        return [self.value]


class CompositeKey(NamedTuple):
    """ Position of a record when the pagination field may have duplicates

    Ties are broken by the unique key
    """
    # Value of the pagination field
    value: Scalar

    # Value of the unique key
    key: Scalar

    def export(self) -> list:
        return [self.value, self.key]


Position = Union[SingleKey, CompositeKey]


def position_from_list(values: list) -> Position:
    """ Make a Position from its exported list form

    Raises:
        ValueError: the list is not a valid position
    """
    if not isinstance(values, list):
        raise ValueError(f'position must be an array, got {type(values).__name__}')

    for value in values:
        if not is_scalar(value):
            raise ValueError(f'position contains a non-scalar value: {value!r}')

    if len(values) == 1:
        return SingleKey(*values)
    elif len(values) == 2:
        return CompositeKey(*values)
    else:
        raise ValueError(f'position must have 1 or 2 values, got {len(values)}')


def position_from_record(record: Record, pagination_field: str, primary_key_field: str) -> Position:
    """ Get the Position of a record

    A record's position is a single value when it's paginated by the unique key,
    and a (value, key) pair otherwise.
    """
    if pagination_field == primary_key_field:
        return SingleKey(get_record_field(record, pagination_field))
    else:
        return CompositeKey(
            get_record_field(record, pagination_field),
            get_record_field(record, primary_key_field),
        )


def get_record_field(record: Record, field_name: str) -> Scalar:
    """ Get a field value from a record: a dict row, or an object """
    if isinstance(record, abc.Mapping):
        return record[field_name]
    else:
        return getattr(record, field_name)


def is_scalar(value) -> bool:
    """ Can this value be stored in a cursor? """
    return value is None or isinstance(value, SCALAR_TYPES)


# Value types that a Position may contain
SCALAR_TYPES = (bool, int, float, str, datetime.datetime, datetime.date, datetime.time, decimal.Decimal, uuid.UUID)
