from typing import Any

from app.core.exceptions import DomainActionError
from app.models.local import Local
from app.models.market import Market
from app.repositories.market import MarketRepository
from app.services.catalogs import CatalogDefinition, CatalogService, Dependent
from app.services.serialization import loaded_relations

MARKETS = CatalogDefinition(
    slug="markets",
    model=Market,
    permission="market",
    label="el mercado",
    export_columns={"id": "#", "code": "Código", "name": "Nombre", "address": "Dirección", "is_active": "Estado", "created_at": "Creado"},
    dependents=(Dependent(Local, "market_id", "locales"),),
)


class MarketService(CatalogService):
    """Markets behave like catalogs; their code freezes once a local points at them."""

    def __init__(self, db, actor=None):
        super().__init__(db, MARKETS, actor)

    def _make_repository(self):
        return MarketRepository(self.db, self.definition)

    def prepare_rows(self, entities) -> None:
        super().prepare_rows(entities)
        self._local_codes = self.repo.local_codes_by_market([e.id for e in entities])

    def to_row(self, entity: Market) -> dict[str, Any]:
        row = super().to_row(entity)
        cached = getattr(self, "_local_codes", {})
        codes = cached[entity.id] if entity.id in cached else self.repo.local_codes_by_market([entity.id])[entity.id]
        row["locals"] = codes
        row.setdefault("locals_count", len(codes))
        return row

    def to_item(self, entity: Market) -> dict[str, Any]:
        item = super().to_item(entity)
        if "locals" in loaded_relations(entity):
            item["locals"] = [{"id": local.id, "code": local.code} for local in entity.locals if local.deleted_at is None]
        return item

    @staticmethod
    def _normalize_code(attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs.get("code") is not None:
            attrs["code"] = str(attrs["code"]).strip().upper()
        return attrs

    def before_create(self, attrs: dict[str, Any]) -> dict[str, Any]:
        return self._normalize_code(attrs)

    def before_update(self, entity: Market, attrs: dict[str, Any]) -> dict[str, Any]:
        attrs = self._normalize_code(attrs)
        if "code" in attrs and attrs["code"] != entity.code and self.repo.blocking_dependent(entity.id) is not None:
            raise DomainActionError("No se puede modificar el código porque el mercado tiene dependencias.")
        return attrs
