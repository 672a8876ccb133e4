import os
import unittest
from contextlib import contextmanager
from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure settings can be initialized in test environments
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from app.core.config import settings
from app.core.security import create_access_token, hash_password
from app.db.session import Base, enable_sqlite_foreign_keys, get_db
from app.main import app
from app.models import registry  # noqa: F401
from app.models.bank import Bank
from app.models.concessionaire import Concessionaire
from app.models.concessionaire_type import ConcessionaireType
from app.models.document_type import DocumentType
from app.models.permission import Permission
from app.models.phone_area_code import PhoneAreaCode
from app.models.role import Role
from app.models.user import User


class DbTestBase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        enable_sqlite_foreign_keys(cls.engine)
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        Base.metadata.create_all(bind=cls.engine)

    @classmethod
    def tearDownClass(cls):
        Base.metadata.drop_all(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        with self.SessionLocal() as db:
            for table in reversed(Base.metadata.sorted_tables):
                db.execute(delete(table))
            db.commit()
        self.db = self.SessionLocal()

    def tearDown(self):
        self.db.close()

    @contextmanager
    def count_statements(self):
        statements: list[str] = []

        def _record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(self.engine, "before_cursor_execute", _record)
        try:
            yield statements
        finally:
            event.remove(self.engine, "before_cursor_execute", _record)

    # --- fixtures -----------------------------------------------------------

    def make_permission(self, name: str, description: str | None = None) -> Permission:
        row = Permission(name=name, guard_name="web", description=description or name)
        self.db.add(row)
        self.db.commit()
        return row

    def make_role(self, name: str, permissions: list[Permission] | None = None, is_active: bool = True) -> Role:
        row = Role(name=name, guard_name="web", is_active=is_active)
        row.permissions = list(permissions or [])
        self.db.add(row)
        self.db.commit()
        return row

    def make_user(self, name: str, email: str, roles: list[Role] | None = None, password: str = "secret123", is_active: bool = True) -> User:
        row = User(name=name, email=email, password_hash=hash_password(password), is_active=is_active)
        row.roles = list(roles or [])
        self.db.add(row)
        self.db.commit()
        return row

    def make_bank(self, code: str, name: str, is_active: bool = True) -> Bank:
        row = Bank(code=code, name=name, is_active=is_active)
        self.db.add(row)
        self.db.commit()
        return row

    def make_concessionaire(self, email: str, full_name: str = "Ana Pérez", **overrides) -> Concessionaire:
        ctype = overrides.pop("concessionaire_type", None) or self._catalog(ConcessionaireType, "PNAT", name="Persona Natural")
        dtype = overrides.pop("document_type", None) or self._catalog(DocumentType, "V", name="Venezolano")
        area = overrides.pop("phone_area_code", None) or self._catalog(PhoneAreaCode, "0412")
        row = Concessionaire(
            concessionaire_type_id=ctype.id,
            document_type_id=dtype.id,
            phone_area_code_id=area.id,
            full_name=full_name,
            document_number=overrides.pop("document_number", "12345678"),
            fiscal_address=overrides.pop("fiscal_address", "Av. Principal"),
            email=email,
            phone_number=overrides.pop("phone_number", "1234567"),
            **overrides,
        )
        self.db.add(row)
        self.db.commit()
        return row

    def _catalog(self, model, code: str, **attrs):
        row = self.db.query(model).filter(model.code == code).first()
        if row is None:
            row = model(code=code, **attrs)
            self.db.add(row)
            self.db.commit()
        return row


class ApiTestBase(DbTestBase):
    def setUp(self):
        super().setUp()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()
        super().tearDown()

    @staticmethod
    def _auth_headers(user_id: int) -> dict[str, str]:
        token = create_access_token(user_id, ttl=timedelta(minutes=30))
        return {"Authorization": f"Bearer {token}"}

    def make_user_with_permissions(self, email: str, permission_names: list[str]) -> User:
        perms = []
        for name in permission_names:
            perm = self.db.query(Permission).filter(Permission.name == name).first() or self.make_permission(name)
            perms.append(perm)
        role = self.make_role(f"role-{email}", perms)
        return self.make_user(email.split("@")[0], email, [role])
