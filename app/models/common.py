from uuid import UUID, uuid4
from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Boolean, DateTime, Integer, String, Uuid, text

def utcnow():
    return datetime.now(timezone.utc)

class IntIdMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

class PublicUuidMixin:
    uuid: Mapped[UUID] = mapped_column(Uuid, unique=True, index=True, default=uuid4, nullable=False)

class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

class SoftDeleteMixin:
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def trashed(self) -> bool:
        return self.deleted_at is not None

class ActiveFlagMixin:
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"), nullable=False)

class CatalogMixin(IntIdMixin, PublicUuidMixin, TimestampMixin, SoftDeleteMixin, ActiveFlagMixin):
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
