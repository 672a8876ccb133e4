from app.api.resource_router import build_resource_router
from app.schemas.resources import LocalCreate, LocalUpdate
from app.services.local import LocalService

router = build_resource_router(
    service_factory=LocalService,
    permission="local",
    create_schema=LocalCreate,
    update_schema=LocalUpdate,
    allowed_with=("market", "local_type", "local_status", "local_location"),
    allowed_appends=("trashed",),
)
