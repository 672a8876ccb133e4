from sqlalchemy import Select

from app.models.concessionaire import Concessionaire
from app.repositories.base import BaseRepository, FilterBuilder
from app.repositories.filters import coerce_filter_value


class ConcessionaireRepository(BaseRepository[Concessionaire]):
    model = Concessionaire
    searchable = ("full_name", "email", "document_number")
    allowed_sorts = ("id", "full_name", "email", "document_number", "is_active", "created_at", "updated_at")
    default_sort = ("full_name", "asc")
    default_with = ("concessionaire_type", "document_type", "phone_area_code")

    def filter_map(self) -> dict[str, FilterBuilder]:
        def concessionaire_type_id(stmt: Select, value) -> Select:
            col = Concessionaire.concessionaire_type_id
            if isinstance(value, list):
                return stmt.where(col.in_([coerce_filter_value(col, v) for v in value]))
            return stmt.where(col == coerce_filter_value(col, value))

        def is_active(stmt: Select, value) -> Select:
            return stmt.where(Concessionaire.is_active == coerce_filter_value(Concessionaire.is_active, value))

        return {
            "concessionaire_type_id": concessionaire_type_id,
            "is_active": is_active,
        }
