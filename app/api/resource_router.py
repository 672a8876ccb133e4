from typing import Any, Callable, Iterable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.params import int_list, list_query_from_request, request_params, show_query_from_request
from app.core.deps import get_audit_context, get_current_user, require_permission
from app.db.session import get_db
from app.models.user import User
from app.schemas.resources import BulkActionPayload, SetActivePayload
from app.services.audit_trail import AuditContext
from app.services.base import BaseService

ServiceFactory = Callable[[Session, Optional[AuditContext]], BaseService]


def _require_action(user: User, permission: str) -> None:
    if permission not in user.permission_names():
        raise HTTPException(status_code=403, detail="No autorizado")


def build_resource_router(
    *,
    service_factory: ServiceFactory,
    permission: str,
    create_schema: type[BaseModel] | None = None,
    update_schema: type[BaseModel] | None = None,
    allowed_with: Iterable[str] = (),
    allowed_counts: Iterable[str] = (),
    allowed_appends: Iterable[str] = (),
    read_only: bool = False,
) -> APIRouter:
    """Standard admin endpoints for one resource.

    ``service_factory(db, actor)`` builds the service per request. Payload
    schemas are required unless ``read_only`` is set.
    """
    allowed_with = tuple(allowed_with)
    allowed_counts = tuple(allowed_counts)
    allowed_appends = tuple(allowed_appends)
    router = APIRouter()

    def perm(action: str):
        return Depends(require_permission(f"{permission}.{action}"))

    @router.get("")
    def list_rows(request: Request, db: Session = Depends(get_db), user: User = perm("view")):
        service = service_factory(db, None)
        payload = service.list(list_query_from_request(request))
        payload["extras"] = service.index_extras()
        return payload

    @router.get("/export")
    def export_rows(
        request: Request,
        format: str = Query(default="csv"),
        db: Session = Depends(get_db),
        user: User = perm("export"),
    ):
        service = service_factory(db, None)
        columns = request_params(request).get("columns")
        return service.export(
            list_query_from_request(request),
            format,
            columns=columns if isinstance(columns, (dict, list)) and columns else None,
        )

    @router.get("/selected")
    def selected_rows(request: Request, db: Session = Depends(get_db), user: User = perm("view")):
        params = request_params(request)
        query = list_query_from_request(request)
        show = show_query_from_request(request, allowed_with, allowed_counts, allowed_appends)
        service = service_factory(db, None)
        return service.list_by_ids_desc(
            int_list(params.get("ids")),
            query.per_page,
            show.with_,
            show.with_count,
            page=query.page,
        )

    @router.get("/uuid/{item_uuid}")
    def show_by_uuid(item_uuid: str, request: Request, db: Session = Depends(get_db), user: User = perm("view")):
        query = show_query_from_request(request, allowed_with, allowed_counts, allowed_appends)
        return service_factory(db, None).show_by_uuid(item_uuid, query)

    @router.get("/{item_id}")
    def show_by_id(item_id: int, request: Request, db: Session = Depends(get_db), user: User = perm("view")):
        query = show_query_from_request(request, allowed_with, allowed_counts, allowed_appends)
        return service_factory(db, None).show_by_id(item_id, query)

    if read_only:
        return router

    if create_schema is None or update_schema is None:
        raise ValueError("create_schema and update_schema are required for writable resources")

    @router.post("", status_code=201)
    def create_row(
        payload: create_schema,
        db: Session = Depends(get_db),
        user: User = perm("create"),
        actor: AuditContext = Depends(get_audit_context),
    ):
        service = service_factory(db, actor)
        entity = service.create(payload.model_dump(exclude_none=True))
        return {"item": service.to_item(entity)}

    @router.patch("/{item_id}")
    def update_row(
        item_id: int,
        payload: update_schema,
        db: Session = Depends(get_db),
        user: User = perm("update"),
        actor: AuditContext = Depends(get_audit_context),
    ):
        data: dict[str, Any] = payload.model_dump(exclude_unset=True)
        expected = data.pop("expected_updated_at", None)
        service = service_factory(db, actor)
        entity = service.update(item_id, data, expected_updated_at=expected)
        return {"item": service.to_item(entity)}

    @router.delete("/{item_id}")
    def delete_row(
        item_id: int,
        db: Session = Depends(get_db),
        user: User = perm("delete"),
        actor: AuditContext = Depends(get_audit_context),
    ):
        return {"deleted": service_factory(db, actor).delete(item_id)}

    @router.post("/{item_id}/restore")
    def restore_row(
        item_id: int,
        db: Session = Depends(get_db),
        user: User = perm("restore"),
        actor: AuditContext = Depends(get_audit_context),
    ):
        return {"restored": service_factory(db, actor).restore(item_id)}

    @router.delete("/{item_id}/force")
    def force_delete_row(
        item_id: int,
        db: Session = Depends(get_db),
        user: User = perm("forceDelete"),
        actor: AuditContext = Depends(get_audit_context),
    ):
        return {"deleted": service_factory(db, actor).force_delete(item_id)}

    @router.patch("/{item_id}/active")
    def set_active_row(
        item_id: int,
        payload: SetActivePayload,
        db: Session = Depends(get_db),
        user: User = perm("setActive"),
        actor: AuditContext = Depends(get_audit_context),
    ):
        service = service_factory(db, actor)
        entity = service.set_active(item_id, payload.active)
        return {"item": service.to_item(entity)}

    @router.post("/bulk")
    def bulk_action(
        payload: BulkActionPayload,
        db: Session = Depends(get_db),
        user: User = Depends(get_current_user),
        actor: AuditContext = Depends(get_audit_context),
    ):
        _require_action(user, f"{permission}.{payload.action}")
        service = service_factory(db, actor)
        by_uuid = bool(payload.uuids) and not payload.ids
        keys = payload.uuids if by_uuid else payload.ids
        suffix = "uuids" if by_uuid else "ids"
        if payload.action == "delete":
            affected = getattr(service, f"bulk_delete_by_{suffix}")(keys)
        elif payload.action == "restore":
            affected = getattr(service, f"bulk_restore_by_{suffix}")(keys)
        elif payload.action == "forceDelete":
            affected = getattr(service, f"bulk_force_delete_by_{suffix}")(keys)
        else:
            affected = getattr(service, f"bulk_set_active_by_{suffix}")(keys, bool(payload.active))
        return {"affected": affected}

    return router
