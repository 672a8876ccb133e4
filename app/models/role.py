from typing import TYPE_CHECKING, List
from sqlalchemy import Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import ActiveFlagMixin, IntIdMixin, PublicUuidMixin, TimestampMixin
from app.models.permission import Permission

if TYPE_CHECKING:
    from app.models.user import User

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)

class Role(Base, IntIdMixin, PublicUuidMixin, TimestampMixin, ActiveFlagMixin):
    __tablename__ = "roles"
    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    guard_name: Mapped[str] = mapped_column(String(50), default="web", nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    permissions: Mapped[List[Permission]] = relationship(secondary=role_permissions, order_by=Permission.name)
    users: Mapped[List["User"]] = relationship(secondary=user_roles, back_populates="roles")
