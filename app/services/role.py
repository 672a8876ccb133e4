from __future__ import annotations

import logging
from typing import Any, Sequence

from sqlalchemy import select, update

from app.core.config import settings
from app.core.exceptions import DomainActionError
from app.models.permission import Permission
from app.models.role import Role
from app.repositories.role import RoleRepository
from app.services.base import BaseService

_LOG = logging.getLogger("app.services.roles")


class RoleService(BaseService[Role]):
    repository_class = RoleRepository

    def is_protected(self, role: Role) -> bool:
        return role.name in settings.protected_roles_list

    def prepare_rows(self, entities) -> None:
        self._user_names = self.repo.user_names_by_role([e.id for e in entities])

    def to_row(self, entity: Role) -> dict[str, Any]:
        row = super().to_row(entity)
        permissions = [{"id": p.id, "name": p.name, "description": p.description} for p in entity.permissions]
        cached = getattr(self, "_user_names", {})
        users = cached[entity.id] if entity.id in cached else self.repo.user_names(entity.id)
        users_count = int(getattr(entity, "users_count", len(users)) or 0)
        users_details = ", ".join(users)
        if users_count > len(users):
            users_details = f"{users_details} (+{users_count - len(users)} más)".strip()
        row.update(
            {
                "permissions": permissions,
                "permissions_ids": [p["id"] for p in permissions],
                "permissions_count": int(getattr(entity, "permissions_count", len(permissions)) or 0),
                "users_count": users_count,
                "users": users,
                "permissions_details": ", ".join(p["description"] or p["name"] for p in permissions),
                "users_details": users_details,
                "is_protected": self.is_protected(entity),
            }
        )
        return row

    def default_export_columns(self):
        return {
            "id": "#",
            "name": "Nombre",
            "guard_name": "Guard",
            "permissions_details": "Permisos",
            "users_details": "Usuarios",
            "is_active": "Estado",
            "created_at": "Creado",
        }

    def index_extras(self) -> dict[str, Any]:
        extras = super().index_extras()
        extras["stats"]["with_permissions"] = self.repo.count({"permissions_count_min": 1})
        extras["available_permissions"] = [
            {"id": p.id, "name": p.name, "description": p.description or p.name}
            for p in self.db.scalars(select(Permission).order_by(Permission.name))
        ]
        return extras

    def _sync_permissions(self, role: Role, attrs: dict[str, Any], before: list[int]) -> None:
        if "permissions_ids" not in attrs:
            return
        after = sorted(p.id for p in role.permissions)
        self._audit(
            "permissions_sync",
            role,
            {"permissions_ids": before},
            {"permissions_ids": after},
        )

    def after_create(self, entity: Role, attrs: dict[str, Any]) -> None:
        self._sync_permissions(entity, attrs, [])

    def before_update(self, entity: Role, attrs: dict[str, Any]) -> dict[str, Any]:
        self._permissions_before = sorted(p.id for p in entity.permissions)
        if self.is_protected(entity) and "name" in attrs and attrs["name"] != entity.name:
            raise DomainActionError("No se puede renombrar un rol protegido.")
        return attrs

    def after_update(self, entity: Role, attrs: dict[str, Any]) -> None:
        self._sync_permissions(entity, attrs, getattr(self, "_permissions_before", []))

    def _ensure_deletable(self, role: Role) -> None:
        if self.is_protected(role):
            raise DomainActionError("No se puede eliminar un rol protegido.")
        if self.repo.ids_with_users([role.id]):
            raise DomainActionError("No se puede eliminar un rol que tiene usuarios asignados.")

    def before_delete(self, entity: Role) -> None:
        self._ensure_deletable(entity)

    def before_force_delete(self, entity: Role) -> None:
        self._ensure_deletable(entity)

    def before_set_active(self, entity: Role, active: bool) -> None:
        if active:
            return
        if settings.ROLES_BLOCK_DEACTIVATE_PROTECTED and self.is_protected(entity):
            raise DomainActionError("No se puede desactivar un rol protegido.")
        if settings.ROLES_BLOCK_DEACTIVATE_IF_HAS_USERS and self.repo.ids_with_users([entity.id]):
            raise DomainActionError("No se puede desactivar un rol que tiene usuarios asignados.")

    def _deletable_ids(self, ids: Sequence[int]) -> list[int]:
        roles = list(self.db.scalars(select(Role).where(Role.id.in_(list(ids)))))
        with_users = self.repo.ids_with_users([r.id for r in roles])
        allowed = [r.id for r in roles if not self.is_protected(r) and r.id not in with_users]
        skipped = len(roles) - len(allowed)
        if skipped:
            _LOG.info("bulk role delete skipped=%s", skipped)
        return allowed

    def bulk_delete_by_ids(self, ids: Sequence[int]) -> int:
        if not ids:
            return 0
        return self.transaction(lambda: self.repo.bulk_delete_by_ids(self._deletable_ids(ids)))

    def bulk_force_delete_by_ids(self, ids: Sequence[int]) -> int:
        if not ids:
            return 0
        return self.transaction(lambda: self.repo.bulk_force_delete_by_ids(self._deletable_ids(ids)))

    def bulk_set_active_by_ids(self, ids: Sequence[int], active: bool) -> int:
        """Only roles whose state changes count; deactivation skips guarded roles."""
        if not ids:
            return 0

        def _apply() -> int:
            roles = list(self.db.scalars(select(Role).where(Role.id.in_(list(ids)))))
            candidates = [r for r in roles if bool(r.is_active) != bool(active)]
            if not active:
                if settings.ROLES_BLOCK_DEACTIVATE_PROTECTED:
                    candidates = [r for r in candidates if not self.is_protected(r)]
                if settings.ROLES_BLOCK_DEACTIVATE_IF_HAS_USERS and candidates:
                    with_users = self.repo.ids_with_users([r.id for r in candidates])
                    candidates = [r for r in candidates if r.id not in with_users]
            target_ids = [r.id for r in candidates]
            if not target_ids:
                return 0
            self.db.execute(
                update(Role)
                .where(Role.id.in_(target_ids))
                .values(is_active=bool(active))
                .execution_options(synchronize_session="fetch")
            )
            return len(target_ids)

        return self.transaction(_apply)
