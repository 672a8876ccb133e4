from sqlalchemy import Select

from app.models.local import Local
from app.repositories.base import BaseRepository, FilterBuilder
from app.repositories.filters import coerce_filter_value, range_clause


def _foreign_key_filter(column) -> FilterBuilder:
    def _apply(stmt: Select, value) -> Select:
        if isinstance(value, list):
            return stmt.where(column.in_([coerce_filter_value(column, v) for v in value]))
        return stmt.where(column == coerce_filter_value(column, value))
    return _apply


class LocalRepository(BaseRepository[Local]):
    model = Local
    searchable = ("code", "name")
    allowed_sorts = ("id", "code", "name", "area_m2", "is_active", "created_at", "updated_at")
    default_sort = ("code", "asc")
    default_with = ("market", "local_type", "local_status", "local_location")

    def filter_map(self) -> dict[str, FilterBuilder]:
        def area_m2_between(stmt: Select, value) -> Select:
            clause = range_clause(Local.area_m2, value) if isinstance(value, dict) else None
            return stmt if clause is None else stmt.where(clause)

        def is_active(stmt: Select, value) -> Select:
            return stmt.where(Local.is_active == coerce_filter_value(Local.is_active, value))

        return {
            "market_id": _foreign_key_filter(Local.market_id),
            "local_type_id": _foreign_key_filter(Local.local_type_id),
            "local_status_id": _foreign_key_filter(Local.local_status_id),
            "local_location_id": _foreign_key_filter(Local.local_location_id),
            "area_m2_between": area_m2_between,
            "is_active": is_active,
        }
