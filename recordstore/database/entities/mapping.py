"""
Entity mapping metadata
=======================

Runtime lookups over the SQLAlchemy declarative registry, used by the query
builder to turn record-type names into mapped classes and to validate the
field names that conditions and sort clauses refer to.

A record type can be named by its class name (``"Customer"``) or by its
table name (``"customer"``). Field names are mapped attribute keys.
"""

import re
from typing import List, Optional, Type

from sqlalchemy import Date, DateTime, inspect as sa_inspect
from sqlalchemy.orm import registry as Registry
from sqlalchemy.orm.util import AliasedClass
from sqlalchemy.types import NullType

from recordstore.database.config.connection_engine import declarativeBase

_NAME_TOKENS = re.compile(r"[A-Z]?[a-z0-9]+|[A-Z]+(?![a-z])")
_TEMPORAL_TOKENS = {"date", "time", "datetime", "timestamp"}


def default_registry() -> Registry:
    return declarativeBase.registry


def resolve_entity(name: str, registry: Optional[Registry] = None) -> Optional[Type]:
    """
    Find the mapped class registered under ``name``.

    Parameters
    ----------
    name : str
        Class name or table name of the record type.
    registry : sqlalchemy.orm.registry, optional
        Registry to search. Defaults to the package's declarative base.

    Returns
    -------
    type | None
        The mapped class, or None if nothing matches.
    """
    name = name.strip()
    registry = registry or default_registry()
    for mapper in registry.mappers:
        table = mapper.local_table
        if mapper.class_.__name__ == name or getattr(table, "name", None) == name:
            return mapper.class_
    return None


def attribute_names(entity) -> List[str]:
    """Column attribute keys of a mapped class or alias."""
    return [attr.key for attr in sa_inspect(entity).mapper.column_attrs]


def relationship_target(entity, name: str) -> Optional[Type]:
    """Class on the far side of relationship ``name``, or None if there is no such relationship."""
    relationships = sa_inspect(entity).mapper.relationships
    if name not in relationships:
        return None
    return relationships[name].mapper.class_


def primary_key_attributes(entity) -> List:
    """Primary key attributes of a mapped class or alias, in key order."""
    mapper = sa_inspect(entity).mapper
    return [getattr(entity, mapper.get_property_by_column(column).key) for column in mapper.primary_key]


def column_type(entity, field: str):
    mapper = sa_inspect(entity).mapper
    if field not in mapper.column_attrs:
        return None
    return mapper.column_attrs[field].columns[0].type


def name_signals_temporal(field: str) -> bool:
    """True for names such as ``orderDate``, ``created_time`` or ``timestamp``."""
    tokens = {token.lower() for token in _NAME_TOKENS.findall(field)}
    return bool(tokens & _TEMPORAL_TOKENS)


def is_temporal(entity, field: str) -> bool:
    """Whether ``field`` holds a date/time: by column type, or by its name when the type says nothing."""
    col_type = column_type(entity, field)
    if isinstance(col_type, (Date, DateTime)):
        return True
    if col_type is None or isinstance(col_type, NullType):
        return name_signals_temporal(field)
    return False


def is_date_only(entity, field: str) -> bool:
    col_type = column_type(entity, field)
    return isinstance(col_type, Date) and not isinstance(col_type, DateTime)


def entity_name(entity) -> str:
    if isinstance(entity, AliasedClass):
        return sa_inspect(entity).mapper.class_.__name__
    return entity.__name__
