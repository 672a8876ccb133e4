from app.api.resource_router import build_resource_router
from app.schemas.resources import RoleCreate, RoleUpdate
from app.services.role import RoleService

router = build_resource_router(
    service_factory=RoleService,
    permission="roles",
    create_schema=RoleCreate,
    update_schema=RoleUpdate,
    allowed_with=("permissions", "users"),
    allowed_counts=("permissions", "users"),
)
