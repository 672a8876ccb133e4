from typing import Any

from app.models.audit import Audit
from app.repositories.audit import AuditRepository
from app.services.base import BaseService


class AuditService(BaseService[Audit]):
    repository_class = AuditRepository

    def to_row(self, entity: Audit) -> dict[str, Any]:
        row = super().to_row(entity)
        row["user_name"] = entity.user.name if entity.user else None
        row["user_email"] = entity.user.email if entity.user else None
        return row

    def to_export_row(self, entity: Audit) -> dict[str, Any]:
        row = super().to_export_row(entity)
        row["changes"] = ", ".join(sorted((entity.new_values or entity.old_values or {}).keys()))
        return row

    def default_export_columns(self):
        return {
            "id": "#",
            "created_at": "Fecha",
            "user_name": "Usuario",
            "event": "Evento",
            "auditable_type": "Entidad",
            "auditable_id": "ID entidad",
            "changes": "Campos",
            "ip_address": "IP",
            "url": "URL",
        }

    def index_extras(self) -> dict[str, Any]:
        return {"stats": {"total": self.repo.count()}}
