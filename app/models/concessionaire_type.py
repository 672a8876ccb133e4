from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import CatalogMixin

class ConcessionaireType(Base, CatalogMixin):
    __tablename__ = "concessionaire_types"
    name: Mapped[str] = mapped_column(String(120), nullable=False)
