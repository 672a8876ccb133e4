from typing import List
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import ActiveFlagMixin, IntIdMixin, PublicUuidMixin, SoftDeleteMixin, TimestampMixin
from app.models.role import Role, user_roles

class User(Base, IntIdMixin, PublicUuidMixin, TimestampMixin, SoftDeleteMixin, ActiveFlagMixin):
    __tablename__ = "users"
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    roles: Mapped[List[Role]] = relationship(secondary=user_roles, back_populates="users", order_by=Role.name)

    def permission_names(self) -> set[str]:
        names: set[str] = set()
        for role in self.roles:
            if not role.is_active:
                continue
            names.update(p.name for p in role.permissions)
        return names
