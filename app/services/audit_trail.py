from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.audit import Audit
from app.services.serialization import row_to_dict

_LOG = logging.getLogger("app.audit")

# Never copied into old_values/new_values.
EXCLUDED_FIELDS = {"password_hash", "created_at", "updated_at"}


@dataclass(frozen=True)
class AuditContext:
    """Who/where a write came from. Empty for scripts and background jobs."""

    user_id: int | None = None
    url: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


SYSTEM_CONTEXT = AuditContext()


def snapshot(entity: Any) -> dict[str, Any]:
    return row_to_dict(entity, hidden=EXCLUDED_FIELDS)


def changed_values(old: dict[str, Any], new: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Keys of ``new`` whose value differs from ``old``; a missing old key reads as None."""
    keys = [k for k in new if old.get(k) != new.get(k)]
    return {k: old.get(k) for k in keys}, {k: new.get(k) for k in keys}


def audit_enabled(event: str) -> bool:
    return settings.AUDIT_ENABLED and event in settings.audit_events_set


def record_audit(
    db: Session,
    ctx: AuditContext | None,
    event: str,
    entity: Any,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
    tags: str | None = None,
) -> Audit | None:
    if not audit_enabled(event):
        return None
    ctx = ctx or SYSTEM_CONTEXT
    row = Audit(
        user_id=ctx.user_id,
        event=event,
        auditable_type=type(entity).__name__,
        auditable_id=getattr(entity, "id", None),
        old_values=old_values or None,
        new_values=new_values or None,
        url=ctx.url,
        ip_address=ctx.ip_address,
        user_agent=(ctx.user_agent or "")[:1023] or None,
        tags=tags,
    )
    db.add(row)
    _LOG.debug("audit event=%s type=%s id=%s", event, row.auditable_type, row.auditable_id)
    return row
