from __future__ import annotations

from functools import cache

import sqlalchemy as sa
from sqlalchemy.orm import (  # type: ignore[attr-defined]  # sqlalchemy stubs not updated
    InstrumentedAttribute,
    RelationshipProperty,
)
from sqlalchemy.orm import (  # type: ignore[attr-defined]  # sqlalchemy stubs not updated
    ONETOMANY,
    MANYTOONE,
)

from keysetpager.sainfo.names import model_name
from keysetpager.typing import SAModelOrAlias, SAAttribute
from keysetpager import exc


def resolve_relation_by_name(field_name: str, Model: SAModelOrAlias, *, where: str) -> InstrumentedAttribute:
    try:
        attribute = getattr(Model, field_name)
    except AttributeError as e:
        raise exc.InvalidRelationError(model_name(Model), field_name, where=where) from e

    # Check that it actually is a relationship
    if not is_relation(attribute):
        raise exc.InvalidRelationError(model_name(Model), field_name, where=where)

    # Done
    return attribute


# region: Relation types

@cache
def is_relation(attribute: SAAttribute):
    return (
        isinstance(attribute, InstrumentedAttribute) and
        isinstance(attribute.property, RelationshipProperty)
    )


@cache
def is_simple_relation(attribute: SAAttribute):
    """ Is it a one-to-many or many-to-one relationship over a single column? """
    return (
        attribute.property.direction in (ONETOMANY, MANYTOONE) and
        len(attribute.property.local_remote_pairs) == 1
    )

# endregion

# region Relation info

@cache
def is_array(attribute: SAAttribute) -> bool:
    return attribute.property.uselist


@cache
def target_model(attribute: SAAttribute) -> type:
    return attribute.property.mapper.class_


def local_remote_columns(attribute: SAAttribute) -> tuple[sa.Column, sa.Column]:
    """ Get the (local column, remote column) pair of a simple relationship """
    (local, remote), = attribute.property.local_remote_pairs
    return local, remote

# endregion
