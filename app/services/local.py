import logging
from typing import Any

from sqlalchemy import func, select

from app.core.exceptions import DomainActionError
from app.models.local import Local
from app.models.local_location import LocalLocation
from app.models.local_status import LocalStatus
from app.models.local_type import LocalType
from app.models.market import Market
from app.repositories.local import LocalRepository
from app.services.base import BaseService

_LOG = logging.getLogger("app.services.locals")

DEFAULT_STATUS_CODE = "DISP"
DEFAULT_STATUS_NAME = "disponible"


class LocalService(BaseService[Local]):
    repository_class = LocalRepository

    def to_row(self, entity: Local) -> dict[str, Any]:
        row = super().to_row(entity)
        row["market_name"] = entity.market.name if entity.market else None
        row["local_type_name"] = entity.local_type.name if entity.local_type else None
        row["local_status_name"] = entity.local_status.name if entity.local_status else None
        row["local_location_name"] = entity.local_location.name if entity.local_location else None
        return row

    def default_export_columns(self):
        return {
            "id": "#",
            "code": "Código",
            "name": "Nombre",
            "market_name": "Mercado",
            "local_type_name": "Tipo de local",
            "local_status_name": "Estado de local",
            "local_location_name": "Ubicación",
            "area_m2": "Área (m²)",
            "is_active": "Estado",
            "created_at": "Creado",
        }

    def default_status_id(self) -> int:
        """Id of the "Disponible" status new locals start in."""
        status_id = self.db.scalar(
            select(LocalStatus.id).where(LocalStatus.code == DEFAULT_STATUS_CODE, LocalStatus.deleted_at.is_(None))
        )
        if status_id is None:
            status_id = self.db.scalar(
                select(LocalStatus.id).where(func.lower(LocalStatus.name) == DEFAULT_STATUS_NAME, LocalStatus.deleted_at.is_(None))
            )
        if status_id is None:
            _LOG.warning("default local status %s is missing", DEFAULT_STATUS_CODE)
            raise DomainActionError('No se encontró el estado por defecto "Disponible" (code DISP). Ejecute el seed.')
        return int(status_id)

    @staticmethod
    def _normalize_code(attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs.get("code") is not None:
            attrs["code"] = str(attrs["code"]).strip().upper()
        return attrs

    def before_create(self, attrs: dict[str, Any]) -> dict[str, Any]:
        attrs = self._normalize_code(attrs)
        if not attrs.get("local_status_id"):
            attrs["local_status_id"] = self.default_status_id()
        return attrs

    def before_update(self, entity: Local, attrs: dict[str, Any]) -> dict[str, Any]:
        return self._normalize_code(attrs)

    def _options(self, model) -> list[dict[str, Any]]:
        stmt = select(model.id, model.name).where(model.is_active.is_(True), model.deleted_at.is_(None)).order_by(model.name)
        return [{"id": int(row.id), "name": str(row.name)} for row in self.db.execute(stmt)]

    def index_extras(self) -> dict[str, Any]:
        extras = super().index_extras()
        extras["filterOptions"] = {
            "markets": self._options(Market),
            "local_types": self._options(LocalType),
            "local_statuses": self._options(LocalStatus),
            "local_locations": self._options(LocalLocation),
        }
        return extras
