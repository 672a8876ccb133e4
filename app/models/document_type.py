from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import CatalogMixin

class DocumentType(Base, CatalogMixin):
    __tablename__ = "document_types"
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    mask: Mapped[str | None] = mapped_column(String(50), nullable=True)
