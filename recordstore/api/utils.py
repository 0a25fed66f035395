"""
Serialization helpers: turn DAO results into an external JSON representation.

- `entity_to_dict(entity)` - mapped column attributes of one entity
- `to_json(value)` - entity, list of entities, `SearchOutcome`, `ErrorMessage`
  or `DaoError` to a JSON string

Datetimes are written as ``yyyy-MM-dd HH:mm:ss`` and dates as ``yyyy-MM-dd``;
other non-JSON values (UUID, Decimal, ...) are written with ``str()``.
"""

import json
from datetime import date, datetime
from typing import Any, Dict

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect

from recordstore.api.models import ErrorMessage
from recordstore.database.daos.generic_dao import SearchOutcome
from recordstore.database.exceptions import DaoError

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"


def _json_default(value: Any):
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, BaseModel):
        return value.model_dump()
    return str(value)


def entity_to_dict(entity: Any) -> Dict[str, Any]:
    """
    Return the column attributes of a mapped entity as a dict.

    Relationships are not followed, so serializing never triggers lazy loads.
    """
    mapper = sa_inspect(entity).mapper
    return {attr.key: getattr(entity, attr.key) for attr in mapper.column_attrs}


def to_payload(value: Any) -> Any:
    """Convert DAO results into plain JSON-ready structures."""
    if isinstance(value, DaoError):
        return value.toErrorMessage().model_dump()
    if isinstance(value, ErrorMessage):
        return value.model_dump()
    if isinstance(value, SearchOutcome):
        return to_payload(value.error) if value.error is not None else to_payload(value.records)
    if isinstance(value, (list, tuple)):
        return [to_payload(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool, dict)):
        return value
    return entity_to_dict(value)


def to_json(value: Any) -> str:
    """
    Serialize a DAO result to JSON.

    Example
    -------
    >>> to_json(DaoError.notFound("No data available on table customer"))
    '{"error_code": 7, "error_description": "No data available on table customer"}'
    """
    return json.dumps(to_payload(value), default=_json_default)
