from decimal import Decimal
from sqlalchemy import ForeignKey, Index, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import ActiveFlagMixin, IntIdMixin, PublicUuidMixin, SoftDeleteMixin, TimestampMixin
from app.models.local_location import LocalLocation
from app.models.local_status import LocalStatus
from app.models.local_type import LocalType
from app.models.market import Market

class Local(Base, IntIdMixin, PublicUuidMixin, TimestampMixin, SoftDeleteMixin, ActiveFlagMixin):
    __tablename__ = "locals"
    __table_args__ = (
        # Trashed locals free their code.
        Index(
            "uq_locals_code_live",
            "code",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )
    code: Mapped[str] = mapped_column(String(30), nullable=False)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    market_id: Mapped[int] = mapped_column(ForeignKey("markets.id", ondelete="RESTRICT"), nullable=False, index=True)
    local_type_id: Mapped[int] = mapped_column(ForeignKey("local_types.id", ondelete="RESTRICT"), nullable=False, index=True)
    local_status_id: Mapped[int] = mapped_column(ForeignKey("local_statuses.id", ondelete="RESTRICT"), nullable=False, index=True)
    local_location_id: Mapped[int] = mapped_column(ForeignKey("local_locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    area_m2: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)

    market: Mapped[Market] = relationship(back_populates="locals")
    local_type: Mapped[LocalType] = relationship()
    local_status: Mapped[LocalStatus] = relationship()
    local_location: Mapped[LocalLocation] = relationship()
