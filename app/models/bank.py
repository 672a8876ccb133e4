from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import CatalogMixin

class Bank(Base, CatalogMixin):
    __tablename__ = "banks"
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    swift_bic: Mapped[str | None] = mapped_column(String(11), nullable=True)
