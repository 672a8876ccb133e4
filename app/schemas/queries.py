from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.core.config import settings

_TRUE_LITERALS = {"true", "1"}
_FALSE_LITERALS = {"false", "0"}
_RANGE_KEYS = ("from", "to")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _to_int(raw: Any, default: int) -> int:
    if isinstance(raw, bool):
        return default
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return default


def normalize_direction(raw: Any) -> Literal["asc", "desc"]:
    text = str(raw or "").strip().lower()
    return "asc" if text == "asc" else "desc"


def _range_bound(value: Any):
    """Comparable form of a range end: a number, a date/datetime, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    if isinstance(value, (date, datetime)):
        return value
    text = str(value).strip()
    try:
        return Decimal(text)
    except InvalidOperation:
        pass
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        return date.fromisoformat(text)
    except ValueError:
        return None


def _ordered_range(rng: dict[str, Any]) -> dict[str, Any]:
    if "from" not in rng or "to" not in rng:
        return rng
    lo = _range_bound(rng["from"])
    hi = _range_bound(rng["to"])
    if lo is None or hi is None:
        return rng
    if isinstance(lo, datetime) != isinstance(hi, datetime) or isinstance(lo, Decimal) != isinstance(hi, Decimal):
        return rng
    try:
        swapped = lo > hi
    except TypeError:
        return rng
    if swapped:
        return {"from": rng["to"], "to": rng["from"]}
    return rng


def _is_range(value: Mapping) -> bool:
    return bool(value) and set(value.keys()) <= set(_RANGE_KEYS)


def normalize_filters(filters: Mapping[str, Any] | None) -> dict[str, Any]:
    """Canonical filter mapping.

    - null and blank values are dropped;
    - ``{"from", "to"}`` ranges keep their non-empty ends and are reordered when
      both ends are numbers or ISO dates with ``from > to``;
    - lists lose their null/blank members and are dropped when nothing remains;
    - the strings ``true/false/1/0`` (any case) become booleans;
    - unknown keys are preserved, the repository decides what it consumes.
    """
    normalized: dict[str, Any] = {}
    for key, value in (filters or {}).items():
        if _is_empty(value):
            continue

        if isinstance(value, Mapping):
            if _is_range(value):
                rng = {k: value[k] for k in _RANGE_KEYS if not _is_empty(value.get(k))}
                if rng:
                    normalized[str(key)] = _ordered_range(rng)
                continue
            nested = normalize_filters(value)
            if nested:
                normalized[str(key)] = nested
            continue

        if isinstance(value, (list, tuple, set)):
            items = [v.strip() if isinstance(v, str) else v for v in value if not _is_empty(v)]
            if items:
                normalized[str(key)] = items
            continue

        if isinstance(value, str):
            text = value.strip()
            lowered = text.lower()
            if lowered in _TRUE_LITERALS:
                normalized[str(key)] = True
            elif lowered in _FALSE_LITERALS:
                normalized[str(key)] = False
            else:
                normalized[str(key)] = text
            continue

        normalized[str(key)] = value
    return normalized


class ListQuery(BaseModel):
    """Normalized list request: search text, paging, sort and filters."""

    model_config = ConfigDict(frozen=True)

    q: str | None = None
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default_factory=lambda: settings.LIST_DEFAULT_PER_PAGE, ge=1)
    sort: str | None = None
    dir: Literal["asc", "desc"] = "desc"
    filters: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_params(cls, params: Mapping[str, Any] | None = None) -> "ListQuery":
        params = params or {}
        q = str(params.get("q") or "").strip() or None

        page = max(1, _to_int(params.get("page"), 1))

        per_page = _to_int(params.get("per_page"), settings.LIST_DEFAULT_PER_PAGE)
        if per_page < 1:
            per_page = settings.LIST_DEFAULT_PER_PAGE
        per_page = min(per_page, settings.LIST_MAX_PER_PAGE)

        sort = str(params.get("sort") or "").strip() or None

        raw_filters = params.get("filters")
        filters = normalize_filters(raw_filters if isinstance(raw_filters, Mapping) else {})

        return cls(
            q=q,
            page=page,
            per_page=per_page,
            sort=sort,
            dir=normalize_direction(params.get("dir")),
            filters=filters,
        )

    def with_filters(self, **extra: Any) -> "ListQuery":
        merged = dict(self.filters)
        merged.update(normalize_filters(extra))
        return self.model_copy(update={"filters": merged})

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def _str_list(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    out: list[str] = []
    for item in raw:
        text = str(item or "").strip()
        if text and text not in out:
            out.append(text)
    return out


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw or "").strip().lower() in {"1", "true", "yes", "on"}


class ShowQuery(BaseModel):
    """Eager-load plan for a single-record read."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    with_: list[str] = Field(default_factory=list, alias="with")
    with_count: list[str] = Field(default_factory=list, alias="withCount")
    append: list[str] = Field(default_factory=list)
    with_trashed: bool = Field(default=False, alias="withTrashed")

    @classmethod
    def from_params(cls, params: Mapping[str, Any] | None = None) -> "ShowQuery":
        params = params or {}
        return cls(
            with_=_str_list(params.get("with")),
            with_count=_str_list(params.get("withCount")),
            append=_str_list(params.get("append")),
            with_trashed=_to_bool(params.get("withTrashed")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "with": list(self.with_),
            "withCount": list(self.with_count),
            "append": list(self.append),
            "withTrashed": self.with_trashed,
        }

    def has_relations(self) -> bool:
        return bool(self.with_)

    def has_counts(self) -> bool:
        return bool(self.with_count)

    def has_appends(self) -> bool:
        return bool(self.append)
