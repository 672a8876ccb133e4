from typing import Optional
from sqlalchemy import ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import IntIdMixin, TimestampMixin
from app.models.user import User

class Audit(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "audits"
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    event: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    auditable_type: Mapped[str] = mapped_column(String(120), nullable=False)
    auditable_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    old_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    new_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(1023), nullable=True)
    tags: Mapped[str | None] = mapped_column(String(255), nullable=True)

    user: Mapped[Optional[User]] = relationship()
