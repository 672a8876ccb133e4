from sqlalchemy import Select

from app.models.role import Role
from app.models.user import User
from app.repositories.base import BaseRepository, FilterBuilder
from app.repositories.filters import coerce_filter_value, like_clause, range_clause


class UserRepository(BaseRepository[User]):
    model = User
    searchable = ("name", "email")
    allowed_sorts = ("id", "name", "email", "is_active", "created_at", "roles_count")
    default_with = ("roles",)
    default_with_count = ("roles",)
    fillable = ("name", "email", "password_hash", "is_active")

    def filter_map(self) -> dict[str, FilterBuilder]:
        def name(stmt: Select, value) -> Select:
            return stmt.where(like_clause(User.name, value))

        def email(stmt: Select, value) -> Select:
            return stmt.where(like_clause(User.email, value))

        def role_id(stmt: Select, value) -> Select:
            return stmt.where(User.roles.any(Role.id == coerce_filter_value(Role.id, value)))

        def is_active(stmt: Select, value) -> Select:
            return stmt.where(User.is_active == coerce_filter_value(User.is_active, value))

        def created_between(stmt: Select, value) -> Select:
            clause = range_clause(User.created_at, value) if isinstance(value, dict) else None
            return stmt if clause is None else stmt.where(clause)

        return {
            "name": name,
            "email": email,
            "role_id": role_id,
            "is_active": is_active,
            "created_between": created_between,
        }

    def find_by_email(self, email: str) -> User | None:
        stmt = self._base_select().where(User.email == str(email or "").strip().lower())
        return self.db.scalars(stmt).first()
