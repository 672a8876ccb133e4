from typing import Any

from app.models.concessionaire import Concessionaire
from app.repositories.concessionaire import ConcessionaireRepository
from app.services.base import BaseService


class ConcessionaireService(BaseService[Concessionaire]):
    repository_class = ConcessionaireRepository

    def to_row(self, entity: Concessionaire) -> dict[str, Any]:
        row = super().to_row(entity)
        row["concessionaire_type_name"] = entity.concessionaire_type.name if entity.concessionaire_type else None
        row["document_type_code"] = entity.document_type.code if entity.document_type else None
        row["document"] = f"{row['document_type_code']}-{entity.document_number}" if entity.document_type else entity.document_number
        row["full_phone"] = entity.full_phone
        return row

    def before_create(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs.get("email"):
            attrs["email"] = str(attrs["email"]).strip().lower()
        return attrs

    def before_update(self, entity: Concessionaire, attrs: dict[str, Any]) -> dict[str, Any]:
        return self.before_create(attrs)

    def default_export_columns(self):
        return {
            "id": "#",
            "full_name": "Nombre completo",
            "concessionaire_type_name": "Tipo",
            "document": "Documento",
            "email": "Email",
            "full_phone": "Teléfono",
            "fiscal_address": "Dirección fiscal",
            "is_active": "Estado",
            "created_at": "Creado",
        }
