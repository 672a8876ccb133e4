from typing import TYPE_CHECKING, List
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import CatalogMixin

if TYPE_CHECKING:
    from app.models.local import Local

class Market(Base, CatalogMixin):
    __tablename__ = "markets"
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)

    locals: Mapped[List["Local"]] = relationship(back_populates="market", order_by="Local.code")
