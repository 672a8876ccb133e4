from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from sqlalchemy.orm import Session

from app.core.exceptions import DomainActionError
from app.models.bank import Bank
from app.models.concessionaire import Concessionaire
from app.models.concessionaire_type import ConcessionaireType
from app.models.contract_modality import ContractModality
from app.models.contract_status import ContractStatus
from app.models.contract_type import ContractType
from app.models.document_type import DocumentType
from app.models.expense_type import ExpenseType
from app.models.local import Local
from app.models.local_location import LocalLocation
from app.models.local_status import LocalStatus
from app.models.local_type import LocalType
from app.models.payment_status import PaymentStatus
from app.models.payment_type import PaymentType
from app.models.phone_area_code import PhoneAreaCode
from app.models.trade_category import TradeCategory
from app.repositories.catalog import CatalogRepository
from app.services.audit_trail import AuditContext
from app.services.base import BaseService

_LOG = logging.getLogger("app.services.catalogs")


@dataclass(frozen=True)
class Dependent:
    model: type
    column: str
    label: str


@dataclass(frozen=True)
class CatalogDefinition:
    slug: str
    model: type
    permission: str
    label: str
    searchable: tuple[str, ...] = ("code", "name")
    export_columns: dict[str, str] = field(default_factory=dict)
    dependents: tuple[Dependent, ...] = ()


_CONCESSIONAIRES = "concesionarios"
_LOCALS = "locales"
_PLAIN_COLUMNS = {"id": "#", "code": "Código", "name": "Nombre", "is_active": "Estado", "created_at": "Creado"}

CATALOGS: dict[str, CatalogDefinition] = {
    d.slug: d
    for d in (
        CatalogDefinition(
            slug="banks",
            model=Bank,
            permission="bank",
            label="el banco",
            export_columns={"id": "#", "code": "Código", "name": "Nombre", "swift_bic": "SWIFT/BIC", "is_active": "Estado", "created_at": "Creado"},
        ),
        CatalogDefinition(
            slug="concessionaire-types",
            model=ConcessionaireType,
            permission="concessionaire_type",
            label="el tipo de concesionario",
            export_columns={"id": "#", "code": "Código", "name": "Nombre", "is_active": "Estado", "created_at": "Creado"},
            dependents=(Dependent(Concessionaire, "concessionaire_type_id", _CONCESSIONAIRES),),
        ),
        CatalogDefinition(
            slug="document-types",
            model=DocumentType,
            permission="document_type",
            label="el tipo de documento",
            export_columns={"id": "#", "code": "Código", "name": "Nombre", "mask": "Máscara", "is_active": "Estado", "created_at": "Creado"},
            dependents=(Dependent(Concessionaire, "document_type_id", _CONCESSIONAIRES),),
        ),
        CatalogDefinition(
            slug="expense-types",
            model=ExpenseType,
            permission="expense_type",
            label="el tipo de gasto",
            searchable=("code", "name", "description"),
            export_columns={"id": "#", "code": "Código", "name": "Nombre", "description": "Descripción", "is_active": "Estado", "created_at": "Creado"},
        ),
        CatalogDefinition(
            slug="payment-statuses",
            model=PaymentStatus,
            permission="payment_status",
            label="el estado de pago",
            export_columns={"id": "#", "code": "Código", "name": "Nombre", "is_active": "Estado", "created_at": "Creado"},
        ),
        CatalogDefinition(
            slug="payment-types",
            model=PaymentType,
            permission="payment_type",
            label="el tipo de pago",
            export_columns={"id": "#", "code": "Código", "name": "Nombre", "is_active": "Estado", "created_at": "Creado"},
        ),
        CatalogDefinition(
            slug="phone-area-codes",
            model=PhoneAreaCode,
            permission="phone_area_code",
            label="el código de área",
            searchable=("code",),
            export_columns={"id": "#", "code": "Código", "is_active": "Estado", "created_at": "Creado"},
            dependents=(Dependent(Concessionaire, "phone_area_code_id", _CONCESSIONAIRES),),
        ),
        CatalogDefinition(
            slug="trade-categories",
            model=TradeCategory,
            permission="trade_category",
            label="la categoría comercial",
            searchable=("code", "name", "description"),
            export_columns={"id": "#", "code": "Código", "name": "Nombre", "description": "Descripción", "is_active": "Estado", "created_at": "Creado"},
        ),
        CatalogDefinition(
            slug="local-locations",
            model=LocalLocation,
            permission="local_location",
            label="la ubicación de local",
            export_columns=dict(_PLAIN_COLUMNS),
            dependents=(Dependent(Local, "local_location_id", _LOCALS),),
        ),
        CatalogDefinition(
            slug="local-statuses",
            model=LocalStatus,
            permission="local_status",
            label="el estado de local",
            searchable=("code", "name", "description"),
            export_columns={"id": "#", "code": "Código", "name": "Nombre", "description": "Descripción", "is_active": "Estado", "created_at": "Creado"},
            dependents=(Dependent(Local, "local_status_id", _LOCALS),),
        ),
        CatalogDefinition(
            slug="local-types",
            model=LocalType,
            permission="local_type",
            label="el tipo de local",
            searchable=("code", "name", "description"),
            export_columns={"id": "#", "code": "Código", "name": "Nombre", "description": "Descripción", "is_active": "Estado", "created_at": "Creado"},
            dependents=(Dependent(Local, "local_type_id", _LOCALS),),
        ),
        CatalogDefinition(
            slug="contract-modalities",
            model=ContractModality,
            permission="contract_modality",
            label="la modalidad de contrato",
            export_columns=dict(_PLAIN_COLUMNS),
        ),
        CatalogDefinition(
            slug="contract-statuses",
            model=ContractStatus,
            permission="contract_status",
            label="el estado de contrato",
            export_columns=dict(_PLAIN_COLUMNS),
        ),
        CatalogDefinition(
            slug="contract-types",
            model=ContractType,
            permission="contract_type",
            label="el tipo de contrato",
            export_columns=dict(_PLAIN_COLUMNS),
        ),
    )
}


def get_catalog(slug: str) -> CatalogDefinition:
    definition = CATALOGS.get(slug)
    if definition is None:
        raise KeyError(slug)
    return definition


class CatalogService(BaseService):
    """CRUD for one reference-data catalog; refuses to remove referenced rows."""

    repository_class = CatalogRepository

    def __init__(self, db: Session, definition: CatalogDefinition, actor: AuditContext | None = None):
        self.definition = definition
        super().__init__(db, actor)

    def _make_repository(self):
        return CatalogRepository(self.db, self.definition)

    def default_export_columns(self):
        return dict(self.definition.export_columns) or super().default_export_columns()

    def export_basename(self) -> str:
        return self.definition.slug.replace("-", "_")

    def prepare_rows(self, entities) -> None:
        ids = [e.id for e in entities]
        referenced = self.repo.referenced_ids(ids) if self.definition.dependents else set()
        self._in_use = {i: i in referenced for i in ids}

    def to_row(self, entity) -> dict[str, Any]:
        row = super().to_row(entity)
        cached = getattr(self, "_in_use", {})
        if entity.id in cached:
            row["in_use"] = cached[entity.id]
        else:
            row["in_use"] = bool(self.definition.dependents) and self.repo.blocking_dependent(entity.id) is not None
        return row

    def before_delete(self, entity) -> None:
        dependent = self.repo.blocking_dependent(entity.id)
        if dependent is not None:
            raise DomainActionError(
                f"No se puede eliminar {self.definition.label} porque existen {dependent.label} asociados. "
                "Desactive en su lugar."
            )

    def before_force_delete(self, entity) -> None:
        dependent = self.repo.blocking_dependent(entity.id, include_trashed=True)
        if dependent is not None:
            raise DomainActionError(
                f"No se puede eliminar permanentemente {self.definition.label} porque existen {dependent.label} asociados."
            )

    def _free_ids(self, ids: Sequence[int], include_trashed: bool = False) -> list[int]:
        referenced = self.repo.referenced_ids(ids, include_trashed)
        if referenced:
            _LOG.info("catalog=%s bulk delete skipped referenced=%s", self.definition.slug, sorted(referenced))
        return [int(i) for i in ids if int(i) not in referenced]

    def bulk_delete_by_ids(self, ids: Sequence[int]) -> int:
        if not ids:
            return 0
        return self.transaction(lambda: self.repo.bulk_delete_by_ids(self._free_ids(ids)))

    def bulk_force_delete_by_ids(self, ids: Sequence[int]) -> int:
        if not ids:
            return 0
        return self.transaction(lambda: self.repo.bulk_force_delete_by_ids(self._free_ids(ids, include_trashed=True)))
