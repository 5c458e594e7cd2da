from __future__ import annotations

from functools import cache

import sqlalchemy as sa
from sqlalchemy.sql.elements import Label
from sqlalchemy.orm import ColumnProperty
from sqlalchemy.orm import (  # type: ignore[attr-defined]  # sqlalchemy stubs not updated
    InstrumentedAttribute,
    MapperProperty,
)

from keysetpager.sainfo.names import model_name
from keysetpager.typing import SAModelOrAlias, SAAttribute
from keysetpager import exc


def resolve_column_by_name(field_name: str, Model: SAModelOrAlias, *, where: str) -> InstrumentedAttribute:
    # As simple as it looks, this code invokes __getattr__() on sa.orm.AliasedClass which adapts the SQL expression
    # to make sure it uses the proper aliased name in queries
    try:
        attribute = getattr(Model, field_name)
    except AttributeError as e:
        raise exc.InvalidColumnError(model_name(Model), field_name, where=where) from e

    # Check that it actually is a column
    if not is_column(attribute):
        raise exc.InvalidColumnError(model_name(Model), field_name, where=where)

    # Done
    return attribute


def column_attribute_names(Model: SAModelOrAlias) -> tuple[str, ...]:
    """ Get the names of all column attributes of a model, in the order of definition """
    return tuple(prop.key for prop in sa.inspect(Model).mapper.column_attrs)


def column_attribute_name(Model: SAModelOrAlias, column: sa.Column) -> str:
    """ Get the name of the model attribute that maps a table column """
    return sa.inspect(Model).mapper.get_property_by_column(column).key


# region: Column Attribute types

@cache
def is_column(attribute: SAAttribute):
    return (
        is_column_property(attribute) or
        is_column_expression(attribute)
    )


@cache
def is_column_property(attribute: SAAttribute):
    return (
        isinstance(attribute, (InstrumentedAttribute, MapperProperty)) and
        isinstance(attribute.property, ColumnProperty) and
        isinstance(attribute.expression, sa.Column)  # not an expression, but a real column
    )


@cache
def is_column_expression(attribute: SAAttribute):
    return (
        isinstance(attribute, (InstrumentedAttribute, MapperProperty)) and
        isinstance(attribute.expression, Label)  # an expression, not a real column
    )

# endregion
