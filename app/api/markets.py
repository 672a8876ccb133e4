from app.api.resource_router import build_resource_router
from app.schemas.resources import MarketCreate, MarketUpdate
from app.services.market import MarketService

router = build_resource_router(
    service_factory=MarketService,
    permission="market",
    create_schema=MarketCreate,
    update_schema=MarketUpdate,
    allowed_with=("locals",),
    allowed_counts=("locals",),
    allowed_appends=("trashed",),
)
