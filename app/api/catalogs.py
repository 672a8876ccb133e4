from fastapi import APIRouter

from app.api.resource_router import build_resource_router
from app.schemas.resources import CatalogCreate, CatalogUpdate
from app.services.catalogs import CATALOGS, CatalogDefinition, CatalogService

router = APIRouter()


def _factory(definition: CatalogDefinition):
    def _make(db, actor=None) -> CatalogService:
        return CatalogService(db, definition, actor)
    return _make


for _slug, _definition in CATALOGS.items():
    router.include_router(
        build_resource_router(
            service_factory=_factory(_definition),
            permission=_definition.permission,
            create_schema=CatalogCreate,
            update_schema=CatalogUpdate,
            allowed_appends=("trashed",),
        ),
        prefix=f"/{_slug}",
        tags=[f"Catalog:{_slug}"],
    )
