from app.api.resource_router import build_resource_router
from app.schemas.resources import UserCreate, UserUpdate
from app.services.user import UserService

router = build_resource_router(
    service_factory=UserService,
    permission="users",
    create_schema=UserCreate,
    update_schema=UserUpdate,
    allowed_with=("roles",),
    allowed_counts=("roles",),
)
