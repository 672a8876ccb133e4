from sqlalchemy import Select

from app.models.audit import Audit
from app.repositories.base import BaseRepository, FilterBuilder
from app.repositories.filters import coerce_filter_value, like_clause, range_clause


class AuditRepository(BaseRepository[Audit]):
    model = Audit
    searchable = ("user.name", "ip_address")
    allowed_sorts = ("id", "created_at", "event", "auditable_type", "auditable_id", "user_id", "ip_address")
    default_sort = ("created_at", "desc")
    active_column = None
    default_with = ("user",)
    fillable = ()

    def filter_map(self) -> dict[str, FilterBuilder]:
        def user_id(stmt: Select, value) -> Select:
            return stmt.where(Audit.user_id == coerce_filter_value(Audit.user_id, value))

        def event(stmt: Select, value) -> Select:
            if isinstance(value, list):
                return stmt.where(Audit.event.in_([str(v) for v in value]))
            return stmt.where(Audit.event == str(value))

        def auditable_type(stmt: Select, value) -> Select:
            return stmt.where(Audit.auditable_type == str(value))

        def auditable_id(stmt: Select, value) -> Select:
            return stmt.where(Audit.auditable_id == coerce_filter_value(Audit.auditable_id, value))

        def ip_address(stmt: Select, value) -> Select:
            return stmt.where(like_clause(Audit.ip_address, value))

        def url(stmt: Select, value) -> Select:
            return stmt.where(like_clause(Audit.url, value))

        def tags(stmt: Select, value) -> Select:
            return stmt.where(like_clause(Audit.tags, value))

        def created_between(stmt: Select, value) -> Select:
            clause = range_clause(Audit.created_at, value) if isinstance(value, dict) else None
            return stmt if clause is None else stmt.where(clause)

        return {
            "user_id": user_id,
            "event": event,
            "auditable_type": auditable_type,
            "auditable_id": auditable_id,
            "ip_address": ip_address,
            "url": url,
            "tags": tags,
            "created_between": created_between,
        }
