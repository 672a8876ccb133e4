from app.api.resource_router import build_resource_router
from app.services.audit import AuditService

# Audit rows are written by the services, never through the API.
router = build_resource_router(
    service_factory=AuditService,
    permission="auditoria",
    allowed_with=("user",),
    read_only=True,
)
