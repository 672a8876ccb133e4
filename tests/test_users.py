from tests.base import *  # noqa: F401,F403

from app.core.exceptions import DomainActionError
from app.core.security import verify_password
from app.models.audit import Audit
from app.models.user import User
from app.schemas.queries import ListQuery
from app.services.audit_trail import AuditContext
from app.services.user import UserService


class UserServiceTests(DbTestBase):
    def setUp(self):
        super().setUp()
        self.editor = self.make_role("editor")
        self.viewer = self.make_role("viewer")
        self.me = self.make_user("Admin", "admin@example.com")
        self.service = UserService(self.db, AuditContext(user_id=self.me.id))

    def test_create_hashes_password_and_lowercases_email(self):
        user = self.service.create(
            {
                "name": "Ana",
                "email": "  Ana@Example.COM ",
                "password": "supersecret",
                "password_confirmation": "supersecret",
                "roles_ids": [self.editor.id],
            }
        )
        self.assertEqual(user.email, "ana@example.com")
        self.assertNotEqual(user.password_hash, "supersecret")
        self.assertTrue(verify_password("supersecret", user.password_hash))
        self.assertEqual([r.name for r in user.roles], ["editor"])

        created = self.db.query(Audit).filter(Audit.event == "created", Audit.auditable_id == user.id).one()
        self.assertNotIn("password_hash", created.new_values)
        self.assertEqual(created.user_id, self.me.id)

    def test_create_requires_password(self):
        with self.assertRaises(DomainActionError):
            self.service.create({"name": "Ana", "email": "ana@example.com"})
        self.assertEqual(self.db.query(User).count(), 1)

    def test_blank_password_keeps_current_hash(self):
        user = self.make_user("Ana", "ana@example.com", password="original1")
        before = user.password_hash
        self.service.update(user.id, {"name": "Ana María", "password": ""})
        self.db.expire_all()
        user = self.db.get(User, user.id)
        self.assertEqual(user.password_hash, before)
        self.assertEqual(user.name, "Ana María")

    def test_roles_sync_is_audited(self):
        user = self.make_user("Ana", "ana@example.com", [self.editor])
        self.service.update(user.id, {"roles_ids": [self.viewer.id]})
        self.db.expire_all()
        self.assertEqual([r.name for r in self.db.get(User, user.id).roles], ["viewer"])
        sync = self.db.query(Audit).filter(Audit.event == "roles_sync").one()
        self.assertEqual(sync.old_values, {"roles_ids": [self.editor.id]})
        self.assertEqual(sync.new_values, {"roles_ids": [self.viewer.id]})

    def test_cannot_delete_or_deactivate_self(self):
        with self.assertRaises(DomainActionError):
            self.service.delete(self.me.id)
        with self.assertRaises(DomainActionError):
            self.service.set_active(self.me.id, False)
        with self.assertRaises(DomainActionError):
            self.service.bulk_delete_by_ids([self.me.id])
        with self.assertRaises(DomainActionError):
            self.service.bulk_set_active_by_ids([self.me.id], False)
        self.db.expire_all()
        me = self.db.get(User, self.me.id)
        self.assertIsNone(me.deleted_at)
        self.assertTrue(me.is_active)

    def test_soft_delete_and_restore_other_user(self):
        user = self.make_user("Ana", "ana@example.com")
        self.assertTrue(self.service.delete(user.id))
        self.assertIsNone(self.service.get_by_id(user.id))
        self.assertTrue(self.service.restore(user.id))
        self.assertIsNotNone(self.service.get_by_id(user.id))

    def test_rows_hide_password_hash(self):
        self.make_user("Ana", "ana@example.com", [self.editor, self.viewer])
        payload = self.service.list(ListQuery.from_params({"q": "ana@"}))
        row = payload["rows"][0]
        self.assertNotIn("password_hash", row)
        self.assertEqual(row["roles"], ["editor", "viewer"])
        self.assertEqual(row["roles_count"], 2)

    def test_filter_by_role(self):
        self.make_user("Ana", "ana@example.com", [self.editor])
        self.make_user("Luis", "luis@example.com", [self.viewer])
        payload = self.service.list(ListQuery.from_params({"filters": {"role_id": str(self.viewer.id)}}))
        self.assertEqual([r["name"] for r in payload["rows"]], ["Luis"])

    def test_inactive_role_grants_nothing(self):
        perm = self.make_permission("users.view")
        role = self.make_role("off", [perm], is_active=False)
        user = self.make_user("Ana", "ana@example.com", [role])
        self.assertEqual(user.permission_names(), set())
