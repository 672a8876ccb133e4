# Importing this module registers every mapped class on Base.metadata.
from app.models.permission import Permission
from app.models.role import Role, role_permissions, user_roles
from app.models.user import User
from app.models.audit import Audit
from app.models.bank import Bank
from app.models.concessionaire_type import ConcessionaireType
from app.models.contract_modality import ContractModality
from app.models.contract_status import ContractStatus
from app.models.contract_type import ContractType
from app.models.document_type import DocumentType
from app.models.expense_type import ExpenseType
from app.models.local_location import LocalLocation
from app.models.local_status import LocalStatus
from app.models.local_type import LocalType
from app.models.payment_status import PaymentStatus
from app.models.payment_type import PaymentType
from app.models.phone_area_code import PhoneAreaCode
from app.models.trade_category import TradeCategory
from app.models.concessionaire import Concessionaire
from app.models.market import Market
from app.models.local import Local

__all__ = [
    "Permission",
    "Role",
    "role_permissions",
    "user_roles",
    "User",
    "Audit",
    "Bank",
    "ConcessionaireType",
    "ContractModality",
    "ContractStatus",
    "ContractType",
    "DocumentType",
    "ExpenseType",
    "LocalLocation",
    "LocalStatus",
    "LocalType",
    "PaymentStatus",
    "PaymentType",
    "PhoneAreaCode",
    "TradeCategory",
    "Concessionaire",
    "Market",
    "Local",
]
