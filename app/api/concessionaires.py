from app.api.resource_router import build_resource_router
from app.schemas.resources import ConcessionaireCreate, ConcessionaireUpdate
from app.services.concessionaire import ConcessionaireService

router = build_resource_router(
    service_factory=ConcessionaireService,
    permission="concessionaire",
    create_schema=ConcessionaireCreate,
    update_schema=ConcessionaireUpdate,
    allowed_with=("concessionaire_type", "document_type", "phone_area_code"),
    allowed_appends=("full_phone",),
)
