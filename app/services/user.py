from __future__ import annotations

from typing import Any, Sequence

from app.core.exceptions import DomainActionError
from app.core.security import hash_password
from app.models.user import User
from app.repositories.user import UserRepository
from app.services.base import BaseService


class UserService(BaseService[User]):
    repository_class = UserRepository

    def to_row(self, entity: User) -> dict[str, Any]:
        return {
            "id": entity.id,
            "uuid": str(entity.uuid),
            "name": entity.name,
            "email": entity.email,
            "is_active": bool(entity.is_active),
            "roles": [r.name for r in entity.roles],
            "roles_count": int(getattr(entity, "roles_count", len(entity.roles)) or 0),
            "created_at": entity.created_at.isoformat() if entity.created_at else None,
            "updated_at": entity.updated_at.isoformat() if entity.updated_at else None,
            "deleted_at": entity.deleted_at.isoformat() if entity.deleted_at else None,
        }

    def to_item(self, entity: User) -> dict[str, Any]:
        item = self.to_row(entity)
        item["roles"] = [{"id": r.id, "name": r.name} for r in entity.roles]
        item["roles_ids"] = [r.id for r in entity.roles]
        return item

    def default_export_columns(self):
        return {
            "id": "#",
            "name": "Nombre",
            "email": "Email",
            "roles_count": "Roles",
            "is_active": "Estado",
            "created_at": "Creado",
        }

    def _prepare(self, attrs: dict[str, Any]) -> dict[str, Any]:
        attrs.pop("password_confirmation", None)
        attrs.pop("password_hash", None)
        if "email" in attrs and attrs["email"]:
            attrs["email"] = str(attrs["email"]).strip().lower()
        password = attrs.pop("password", None)
        if password:
            attrs["password_hash"] = hash_password(str(password))
        return attrs

    def before_create(self, attrs: dict[str, Any]) -> dict[str, Any]:
        attrs = self._prepare(attrs)
        if "password_hash" not in attrs:
            raise DomainActionError("La contraseña es obligatoria.")
        return attrs

    def before_update(self, entity: User, attrs: dict[str, Any]) -> dict[str, Any]:
        self._roles_before = sorted(r.id for r in entity.roles)
        return self._prepare(attrs)

    def _sync_roles(self, user: User, attrs: dict[str, Any], before: list[int]) -> None:
        if "roles_ids" not in attrs:
            return
        after = sorted(r.id for r in user.roles)
        if after != before:
            self._audit("roles_sync", user, {"roles_ids": before}, {"roles_ids": after})

    def after_create(self, entity: User, attrs: dict[str, Any]) -> None:
        self._sync_roles(entity, attrs, [])

    def after_update(self, entity: User, attrs: dict[str, Any]) -> None:
        self._sync_roles(entity, attrs, getattr(self, "_roles_before", []))

    def _ensure_not_self(self, user_id: int, message: str) -> None:
        if self.actor.user_id is not None and user_id == self.actor.user_id:
            raise DomainActionError(message)

    def before_delete(self, entity: User) -> None:
        self._ensure_not_self(entity.id, "No puedes eliminar tu propio usuario.")

    def before_force_delete(self, entity: User) -> None:
        self._ensure_not_self(entity.id, "No puedes eliminar tu propio usuario.")

    def before_set_active(self, entity: User, active: bool) -> None:
        if not active:
            self._ensure_not_self(entity.id, "No puedes desactivar tu propio usuario.")

    def _guard_bulk(self, ids: Sequence[int], message: str) -> None:
        if self.actor.user_id is not None and self.actor.user_id in {int(i) for i in ids}:
            raise DomainActionError(message)

    def bulk_delete_by_ids(self, ids: Sequence[int]) -> int:
        self._guard_bulk(ids, "No puedes eliminar tu propio usuario.")
        return super().bulk_delete_by_ids(ids)

    def bulk_force_delete_by_ids(self, ids: Sequence[int]) -> int:
        self._guard_bulk(ids, "No puedes eliminar tu propio usuario.")
        return super().bulk_force_delete_by_ids(ids)

    def bulk_set_active_by_ids(self, ids: Sequence[int], active: bool) -> int:
        if not active:
            self._guard_bulk(ids, "No puedes desactivar tu propio usuario.")
        return super().bulk_set_active_by_ids(ids, active)
