from sqlalchemy import Select, func, select

from app.models.permission import Permission
from app.models.role import Role, user_roles
from app.models.user import User
from app.repositories.base import BaseRepository, FilterBuilder
from app.repositories.filters import coerce_count, coerce_filter_value, range_clause


class RoleRepository(BaseRepository[Role]):
    model = Role
    searchable = ("name",)
    allowed_sorts = ("id", "name", "guard_name", "created_at", "permissions_count", "users_count", "is_active")
    default_with = ("permissions",)
    default_with_count = ("permissions", "users")
    fillable = ("name", "guard_name", "description", "is_active")

    def filter_map(self) -> dict[str, FilterBuilder]:
        def guard_name(stmt: Select, value) -> Select:
            return stmt.where(Role.guard_name == str(value))

        def created_between(stmt: Select, value) -> Select:
            clause = range_clause(Role.created_at, value) if isinstance(value, dict) else None
            return stmt if clause is None else stmt.where(clause)

        def permissions(stmt: Select, value) -> Select:
            names = value if isinstance(value, list) else [value]
            names = [str(n) for n in names if n not in (None, "")]
            if not names:
                return stmt
            return stmt.where(Role.permissions.any(Permission.name.in_(names)))

        def permissions_count_min(stmt: Select, value) -> Select:
            return stmt.where(self.count_expression("permissions") >= coerce_count("permissions_count", value))

        def permissions_count_max(stmt: Select, value) -> Select:
            return stmt.where(self.count_expression("permissions") <= coerce_count("permissions_count", value))

        def users_count_min(stmt: Select, value) -> Select:
            return stmt.where(self.count_expression("users") >= coerce_count("users_count", value))

        def users_count_max(stmt: Select, value) -> Select:
            return stmt.where(self.count_expression("users") <= coerce_count("users_count", value))

        def is_active(stmt: Select, value) -> Select:
            return stmt.where(Role.is_active == coerce_filter_value(Role.is_active, value))

        return {
            "guard_name": guard_name,
            "created_between": created_between,
            "permissions": permissions,
            "permissions_count_min": permissions_count_min,
            "permissions_count_max": permissions_count_max,
            "users_count_min": users_count_min,
            "users_count_max": users_count_max,
            "is_active": is_active,
        }

    def ids_with_users(self, ids) -> set[int]:
        if not ids:
            return set()
        stmt = select(user_roles.c.role_id).where(user_roles.c.role_id.in_(list(ids))).distinct()
        return set(self.db.scalars(stmt).all())

    def user_names(self, role_id: int, limit: int = 10) -> list[str]:
        stmt = (
            select(User.name)
            .join(user_roles, user_roles.c.user_id == User.id)
            .where(user_roles.c.role_id == role_id, User.deleted_at.is_(None))
            .order_by(User.name)
            .limit(limit)
        )
        return list(self.db.scalars(stmt).all())

    def user_names_by_role(self, role_ids, limit: int = 10) -> dict[int, list[str]]:
        """First ``limit`` active user names for each role, in one query."""
        out: dict[int, list[str]] = {int(i): [] for i in role_ids or ()}
        if not out:
            return out
        rank = func.row_number().over(partition_by=user_roles.c.role_id, order_by=User.name).label("rank")
        ranked = (
            select(user_roles.c.role_id, User.name, rank)
            .join(User, User.id == user_roles.c.user_id)
            .where(user_roles.c.role_id.in_(list(out)), User.deleted_at.is_(None))
            .subquery()
        )
        stmt = select(ranked.c.role_id, ranked.c.name).where(ranked.c.rank <= limit).order_by(ranked.c.role_id, ranked.c.rank)
        for role_id, name in self.db.execute(stmt):
            out[role_id].append(name)
        return out
