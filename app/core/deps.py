from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.security import decode_access_token
from app.db.session import get_db
from app.models.user import User
from app.services.audit_trail import AuditContext

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="Token de acceso ausente")
    user_id = decode_access_token(creds.credentials)
    user = db.get(User, user_id)
    if user is None or user.deleted_at is not None or not user.is_active:
        raise HTTPException(status_code=401, detail="Usuario inactivo o inexistente")
    return user


def require_permission(name: str):
    def _inner(user: User = Depends(get_current_user)) -> User:
        if name not in user.permission_names():
            raise HTTPException(status_code=403, detail="No autorizado")
        return user
    return _inner


def get_audit_context(request: Request, user: User = Depends(get_current_user)) -> AuditContext:
    return AuditContext(
        user_id=user.id,
        url=str(request.url),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
