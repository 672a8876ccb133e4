from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import CatalogMixin

class PhoneAreaCode(Base, CatalogMixin):
    __tablename__ = "phone_area_codes"
    code: Mapped[str] = mapped_column(String(4), unique=True, nullable=False)
