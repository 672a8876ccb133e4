import uuid
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import String, and_, cast, func

from app.core.exceptions import DomainActionError


def _bad_filter_value(column_key: str, kind: str) -> DomainActionError:
    return DomainActionError(f'Valor de filtro inválido para el campo "{column_key}" ({kind})')


def column_python_type(column):
    try:
        return column.property.columns[0].type.python_type
    except (AttributeError, IndexError, NotImplementedError):
        return None


def _coerce_bool(column_key: str, value):
    if isinstance(value, bool):
        return value
    text = str(value if value is not None else "").strip().lower()
    if text in {"1", "true", "yes", "si", "sí", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    raise _bad_filter_value(column_key, "boolean")


def _coerce_number(column_key: str, value, python_type):
    if isinstance(value, bool):
        # "1"/"0" arrive as booleans after list-query normalization.
        return python_type(int(value))
    if python_type in {int, float} and isinstance(value, (int, float)):
        return python_type(value)
    if python_type is Decimal and isinstance(value, Decimal):
        return value
    text = str(value if value is not None else "").strip()
    if not text:
        raise _bad_filter_value(column_key, "number")
    normalized = text.replace(",", ".")
    try:
        if python_type is int:
            return int(normalized)
        if python_type is float:
            return float(normalized)
        return Decimal(normalized)
    except (ValueError, TypeError, InvalidOperation):
        raise _bad_filter_value(column_key, "number")


def coerce_count(key: str, value) -> int:
    return _coerce_number(key, value, int)


def _coerce_datetime(column_key: str, value) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, datetime.min.time())
    else:
        text = str(value or "").strip()
        if not text:
            raise _bad_filter_value(column_key, "datetime")
        try:
            if is_date_only_literal(text):
                parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise _bad_filter_value(column_key, "datetime")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _coerce_date(column_key: str, value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise _bad_filter_value(column_key, "date")


def is_date_only_literal(raw_value) -> bool:
    if isinstance(raw_value, date) and not isinstance(raw_value, datetime):
        return True
    if not isinstance(raw_value, str):
        return False
    text = raw_value.strip()
    if not text or "T" in text or " " in text:
        return False
    try:
        date.fromisoformat(text)
        return True
    except ValueError:
        return False


def coerce_filter_value(column, value):
    """Convert a raw filter value to the python type of ``column``."""
    python_type = column_python_type(column)
    if python_type is None:
        return value
    if python_type is uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value or "").strip())
        except ValueError:
            raise _bad_filter_value(column.key, "uuid")
    if python_type is bool:
        return _coerce_bool(column.key, value)
    if python_type in {int, float, Decimal}:
        return _coerce_number(column.key, value, python_type)
    if python_type is datetime:
        return _coerce_datetime(column.key, value)
    if python_type is date:
        return _coerce_date(column.key, value)
    if python_type is str and not isinstance(value, str):
        if isinstance(value, bool):
            return "1" if value else "0"
        return str(value)
    return value


def like_clause(column, value):
    needle = f"%{str(value).strip().lower()}%"
    python_type = column_python_type(column)
    if python_type is str:
        return func.lower(column).like(needle)
    return func.lower(cast(column, String)).like(needle)


def range_clause(column, value: Mapping):
    """``from``/``to`` bounds, both inclusive.

    A date-only ``to`` on a timestamp column covers the whole day.
    """
    clauses = []
    python_type = column_python_type(column)
    if value.get("from") is not None:
        clauses.append(column >= coerce_filter_value(column, value["from"]))
    if value.get("to") is not None:
        raw_to = value["to"]
        if python_type is datetime and is_date_only_literal(raw_to):
            clauses.append(column < coerce_filter_value(column, raw_to) + timedelta(days=1))
        else:
            clauses.append(column <= coerce_filter_value(column, raw_to))
    if not clauses:
        return None
    return and_(*clauses)


def equals_clause(column, value):
    if isinstance(value, (list, tuple, set)):
        return column.in_([coerce_filter_value(column, v) for v in value])
    if isinstance(value, Mapping):
        return range_clause(column, value)
    if column_python_type(column) is datetime and is_date_only_literal(value):
        day_start = coerce_filter_value(column, value)
        return and_(column >= day_start, column < day_start + timedelta(days=1))
    return column == coerce_filter_value(column, value)
