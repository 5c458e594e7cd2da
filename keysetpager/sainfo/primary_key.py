from functools import cache

import sqlalchemy as sa
import sqlalchemy.orm


@cache
def primary_key_columns(Model: type) -> tuple[sa.Column, ...]:
    """ Get the list of primary key columns """
    return tuple(c for c in sa.orm.class_mapper(Model).primary_key)
