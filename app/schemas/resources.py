import re
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class LoginIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "Bearer"


class StaleCheck(BaseModel):
    """Update bodies may carry the ``updated_at`` the client last saw."""

    expected_updated_at: Optional[datetime | str] = None


class RoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    guard_name: str = "web"
    description: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = True
    permissions_ids: list[int] = Field(default_factory=list)


class RoleUpdate(StaleCheck):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    guard_name: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=255)
    is_active: Optional[bool] = None
    permissions_ids: Optional[list[int]] = None


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=200)
    password: str = Field(min_length=8)
    password_confirmation: Optional[str] = None
    is_active: bool = True
    roles_ids: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password_confirmation is not None and self.password_confirmation != self.password:
            raise ValueError("La confirmación de contraseña no coincide")
        return self


class UserUpdate(StaleCheck):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, min_length=3, max_length=200)
    password: Optional[str] = None
    password_confirmation: Optional[str] = None
    is_active: Optional[bool] = None
    roles_ids: Optional[list[int]] = None

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password and self.password_confirmation is not None and self.password_confirmation != self.password:
            raise ValueError("La confirmación de contraseña no coincide")
        return self


class ConcessionaireCreate(BaseModel):
    concessionaire_type_id: int
    full_name: str = Field(min_length=1, max_length=160)
    document_type_id: int
    document_number: str = Field(min_length=1, max_length=20)
    fiscal_address: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=160)
    phone_area_code_id: Optional[int] = None
    phone_number: Optional[str] = Field(default=None, min_length=7, max_length=7)
    photo_path: Optional[str] = None
    id_document_path: Optional[str] = None
    is_active: bool = True

    @field_validator("phone_number")
    @classmethod
    def _digits_only(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.isdigit():
            raise ValueError("El número telefónico debe contener solo dígitos")
        return value


class ConcessionaireUpdate(StaleCheck):
    concessionaire_type_id: Optional[int] = None
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=160)
    document_type_id: Optional[int] = None
    document_number: Optional[str] = Field(default=None, min_length=1, max_length=20)
    fiscal_address: Optional[str] = None
    email: Optional[str] = Field(default=None, min_length=3, max_length=160)
    phone_area_code_id: Optional[int] = None
    phone_number: Optional[str] = Field(default=None, min_length=7, max_length=7)
    photo_path: Optional[str] = None
    id_document_path: Optional[str] = None
    is_active: Optional[bool] = None


class CatalogCreate(BaseModel):
    code: str = Field(min_length=1, max_length=30)
    name: Optional[str] = Field(default=None, max_length=160)
    description: Optional[str] = None
    mask: Optional[str] = Field(default=None, max_length=50)
    swift_bic: Optional[str] = Field(default=None, max_length=11)
    is_active: bool = True


class CatalogUpdate(StaleCheck):
    code: Optional[str] = Field(default=None, min_length=1, max_length=30)
    name: Optional[str] = Field(default=None, max_length=160)
    description: Optional[str] = None
    mask: Optional[str] = Field(default=None, max_length=50)
    swift_bic: Optional[str] = Field(default=None, max_length=11)
    is_active: Optional[bool] = None


class MarketCreate(BaseModel):
    code: str = Field(min_length=1, max_length=30)
    name: str = Field(min_length=1, max_length=160)
    address: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = True


class MarketUpdate(StaleCheck):
    code: Optional[str] = Field(default=None, min_length=1, max_length=30)
    name: Optional[str] = Field(default=None, min_length=1, max_length=160)
    address: Optional[str] = Field(default=None, max_length=255)
    is_active: Optional[bool] = None


LOCAL_CODE_PATTERN = re.compile(r"^[A-Z]-[0-9]{2}$")


def _local_code(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    code = value.strip().upper()
    if not LOCAL_CODE_PATTERN.match(code):
        raise ValueError("El código del local debe tener el formato A-01")
    return code


class LocalCreate(BaseModel):
    code: str
    name: str = Field(min_length=1, max_length=160)
    market_id: int
    local_type_id: int
    local_location_id: int
    area_m2: Decimal = Field(ge=0, max_digits=8, decimal_places=2)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def _code_format(cls, value: Optional[str]) -> Optional[str]:
        return _local_code(value)


class LocalUpdate(StaleCheck):
    code: Optional[str] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=160)
    market_id: Optional[int] = None
    local_type_id: Optional[int] = None
    local_status_id: Optional[int] = None
    local_location_id: Optional[int] = None
    area_m2: Optional[Decimal] = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def _code_format(cls, value: Optional[str]) -> Optional[str]:
        return _local_code(value)


class SetActivePayload(BaseModel):
    active: bool


class BulkActionPayload(BaseModel):
    action: Literal["delete", "restore", "forceDelete", "setActive"]
    ids: list[int] = Field(default_factory=list)
    uuids: list[UUID] = Field(default_factory=list)
    active: Optional[bool] = None

    @model_validator(mode="after")
    def _check(self):
        if self.action == "setActive" and self.active is None:
            raise ValueError("El campo active es obligatorio para setActive")
        return self
