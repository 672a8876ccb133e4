from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import CatalogMixin

class ContractType(Base, CatalogMixin):
    __tablename__ = "contract_types"
    name: Mapped[str] = mapped_column(String(160), nullable=False)
