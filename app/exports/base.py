from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Iterator, Sequence

from fastapi.responses import StreamingResponse

from app.core.config import settings

Columns = Mapping[str, str] | Sequence[str]

_LOG = logging.getLogger("app.exports")


def normalize_columns(columns: Columns) -> list[tuple[str, str]]:
    """``[(field, label), ...]`` in output order.

    A mapping is read as field -> label; a plain list uses the field as label.
    """
    if isinstance(columns, Mapping):
        return [(str(k), str(v if v not in (None, "") else k)) for k, v in columns.items()]
    return [(str(c), str(c)) for c in columns]


def format_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return settings.EXPORT_TRUE_LABEL if value else settings.EXPORT_FALSE_LABEL
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(format_value(v)) for v in value)
    return value


def field_value(row: Any, field: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(field)
    return getattr(row, field, None)


def project(row: Any, columns: list[tuple[str, str]]) -> list[Any]:
    return [format_value(field_value(row, field)) for field, _ in columns]


class Exporter(ABC):
    format: str
    extension: str
    media_type: str

    @abstractmethod
    def iter_chunks(self, rows: Iterable[Any], columns: list[tuple[str, str]]) -> Iterator[str]:
        raise NotImplementedError

    def stream(self, rows: Iterable[Any], columns: Columns, filename: str | None = None) -> StreamingResponse:
        cols = normalize_columns(columns)
        response = StreamingResponse(self.iter_chunks(rows, cols), media_type=self.media_type)
        name = filename or f"export.{self.extension}"
        response.headers["Content-Disposition"] = f'attachment; filename="{name}"'
        _LOG.info("export format=%s columns=%s filename=%s", self.format, len(cols), name)
        return response
