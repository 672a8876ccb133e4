from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import IntIdMixin, TimestampMixin

class Permission(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "permissions"
    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    guard_name: Mapped[str] = mapped_column(String(50), default="web", nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
