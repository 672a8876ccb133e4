from typing import Optional
from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import ActiveFlagMixin, IntIdMixin, PublicUuidMixin, SoftDeleteMixin, TimestampMixin
from app.models.concessionaire_type import ConcessionaireType
from app.models.document_type import DocumentType
from app.models.phone_area_code import PhoneAreaCode

class Concessionaire(Base, IntIdMixin, PublicUuidMixin, TimestampMixin, SoftDeleteMixin, ActiveFlagMixin):
    __tablename__ = "concessionaires"
    concessionaire_type_id: Mapped[int] = mapped_column(ForeignKey("concessionaire_types.id", ondelete="RESTRICT"), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(160), nullable=False)
    document_type_id: Mapped[int] = mapped_column(ForeignKey("document_types.id", ondelete="RESTRICT"), nullable=False, index=True)
    document_number: Mapped[str] = mapped_column(String(20), nullable=False)
    fiscal_address: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(160), unique=True, nullable=False)
    phone_area_code_id: Mapped[int | None] = mapped_column(ForeignKey("phone_area_codes.id", ondelete="RESTRICT"), nullable=True, index=True)
    phone_number: Mapped[str | None] = mapped_column(String(7), nullable=True)
    photo_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    id_document_path: Mapped[str | None] = mapped_column(String(255), nullable=True)

    concessionaire_type: Mapped[ConcessionaireType] = relationship()
    document_type: Mapped[DocumentType] = relationship()
    phone_area_code: Mapped[Optional[PhoneAreaCode]] = relationship()

    @property
    def full_phone(self) -> str | None:
        if not self.phone_number:
            return None
        prefix = self.phone_area_code.code if self.phone_area_code else ""
        return f"{prefix}-{self.phone_number}" if prefix else self.phone_number
