import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import inspect as sa_inspect

HIDDEN_FIELDS = {"password_hash"}


def serialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def row_to_dict(row: Any, hidden: Iterable[str] = HIDDEN_FIELDS) -> dict[str, Any]:
    mapper = sa_inspect(type(row))
    skip = set(hidden)
    return {
        attr.key: serialize_value(getattr(row, attr.key))
        for attr in mapper.column_attrs
        if attr.key not in skip
    }


def raw_columns(row: Any, hidden: Iterable[str] = HIDDEN_FIELDS) -> dict[str, Any]:
    """Column values as stored, for exporters that format them themselves."""
    mapper = sa_inspect(type(row))
    skip = set(hidden)
    return {attr.key: getattr(row, attr.key) for attr in mapper.column_attrs if attr.key not in skip}


def loaded_relations(row: Any) -> list[str]:
    state = sa_inspect(row)
    unloaded = state.unloaded
    return [rel.key for rel in state.mapper.relationships if rel.key not in unloaded]


def relation_to_value(row: Any, name: str) -> Any:
    value = getattr(row, name)
    if value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        return [row_to_dict(item) for item in value]
    return row_to_dict(value)
