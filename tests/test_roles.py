from tests.base import *  # noqa: F401,F403

from app.core.config import settings
from app.core.exceptions import DomainActionError
from app.models.audit import Audit
from app.schemas.queries import ListQuery
from app.services.role import RoleService


class RoleServiceTests(DbTestBase):
    def setUp(self):
        super().setUp()
        self.view = self.make_permission("roles.view", "Ver roles")
        self.update = self.make_permission("roles.update", "Actualizar roles")
        self.service = RoleService(self.db)

    def test_create_syncs_permissions_and_audits_sync(self):
        role = self.service.create({"name": "editor", "permissions_ids": [self.view.id, self.update.id]})
        self.assertEqual(sorted(p.name for p in role.permissions), ["roles.update", "roles.view"])
        events = [a.event for a in self.db.query(Audit).order_by(Audit.id)]
        self.assertEqual(events, ["created", "permissions_sync"])

    def test_update_replaces_permissions(self):
        role = self.service.create({"name": "editor", "permissions_ids": [self.view.id, self.update.id]})
        self.service.update(role.id, {"permissions_ids": [self.view.id]})
        self.db.expire_all()
        role = self.service.get_by_id(role.id)
        self.assertEqual([p.name for p in role.permissions], ["roles.view"])
        sync = self.db.query(Audit).filter(Audit.event == "permissions_sync").order_by(Audit.id.desc()).first()
        self.assertEqual(sync.old_values, {"permissions_ids": sorted([self.view.id, self.update.id])})
        self.assertEqual(sync.new_values, {"permissions_ids": [self.view.id]})

    def test_row_shape(self):
        role = self.make_role("editor", [self.view])
        self.make_user("Ana", "ana@example.com", [role])
        payload = self.service.list(ListQuery.from_params({}))
        row = payload["rows"][0]
        self.assertEqual(row["permissions_count"], 1)
        self.assertEqual(row["users_count"], 1)
        self.assertEqual(row["users"], ["Ana"])
        self.assertEqual(row["permissions_details"], "Ver roles")
        self.assertFalse(row["is_protected"])

    def test_protected_role_cannot_be_deleted_or_renamed(self):
        admin = self.make_role(settings.protected_roles_list[0])
        with self.assertRaises(DomainActionError):
            self.service.delete(admin.id)
        with self.assertRaises(DomainActionError):
            self.service.update(admin.id, {"name": "root"})
        self.assertIsNotNone(self.service.get_by_id(admin.id))

    def test_role_with_users_cannot_be_deleted_or_deactivated(self):
        role = self.make_role("editor")
        self.make_user("Ana", "ana@example.com", [role])
        with self.assertRaises(DomainActionError) as ctx:
            self.service.delete(role.id)
        self.assertEqual(ctx.exception.status_code, 422)
        with self.assertRaises(DomainActionError):
            self.service.set_active(role.id, False)

    def test_delete_free_role_removes_it(self):
        role = self.make_role("editor", [self.view])
        self.assertTrue(self.service.delete(role.id))
        self.assertIsNone(self.service.get_by_id(role.id))

    def test_restore_is_unsupported_for_roles(self):
        role = self.make_role("editor")
        self.assertFalse(self.service.restore(role.id))

    def test_bulk_delete_skips_blocked_roles(self):
        protected = self.make_role(settings.protected_roles_list[0])
        busy = self.make_role("busy")
        free = self.make_role("free")
        self.make_user("Ana", "ana@example.com", [busy])
        self.assertEqual(self.service.bulk_delete_by_ids([protected.id, busy.id, free.id]), 1)
        self.db.expire_all()
        remaining = {r.name for r in self.service.repo.all()}
        self.assertEqual(remaining, {protected.name, "busy"})

    def test_bulk_deactivate_counts_only_changes(self):
        protected = self.make_role(settings.protected_roles_list[0])
        busy = self.make_role("busy")
        free = self.make_role("free")
        inactive = self.make_role("already-off", is_active=False)
        self.make_user("Ana", "ana@example.com", [busy])

        ids = [protected.id, busy.id, free.id, inactive.id]
        self.assertEqual(self.service.bulk_set_active_by_ids(ids, False), 1)
        self.assertEqual(self.service.bulk_set_active_by_ids(ids, True), 2)

    def test_index_extras(self):
        self.make_role("editor", [self.view])
        self.make_role("empty")
        extras = self.service.index_extras()
        self.assertEqual(extras["stats"]["total"], 2)
        self.assertEqual(extras["stats"]["with_permissions"], 1)
        self.assertEqual([p["name"] for p in extras["available_permissions"]], ["roles.update", "roles.view"])

    def test_filter_by_permission_name(self):
        self.make_role("editor", [self.update])
        self.make_role("viewer", [self.view])
        payload = self.service.list(ListQuery.from_params({"filters": {"permissions": ["roles.update"]}}))
        self.assertEqual([r["name"] for r in payload["rows"]], ["editor"])

    def test_user_names_are_loaded_once_per_page(self):
        editor = self.make_role("editor", [self.view])
        self.make_user("Ana", "ana@example.com", [editor])
        with self.count_statements() as few:
            self.service.list(ListQuery())
        for i in range(4):
            role = self.make_role(f"rol-{i}", [self.view])
            self.make_user(f"Usuario {i}", f"u{i}@example.com", [role])
        with self.count_statements() as many:
            rows = self.service.list(ListQuery())["rows"]
        self.assertEqual(len(rows), 5)
        self.assertEqual(len(many), len(few))
        self.assertEqual({r["name"]: r["users"] for r in rows}["editor"], ["Ana"])

    def test_user_names_by_role_caps_each_role(self):
        editor = self.make_role("editor")
        auditor = self.make_role("auditor")
        for name in ("Carla", "Ana", "Beto"):
            self.make_user(name, f"{name.lower()}@example.com", [editor])
        names = self.service.repo.user_names_by_role([editor.id, auditor.id], limit=2)
        self.assertEqual(names, {editor.id: ["Ana", "Beto"], auditor.id: []})
