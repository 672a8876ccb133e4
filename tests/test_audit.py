from tests.base import *  # noqa: F401,F403

from app.exports.base import normalize_columns
from app.exports.csv_exporter import CsvExporter
from app.schemas.queries import ListQuery
from app.services.audit import AuditService
from app.services.audit_trail import AuditContext, audit_enabled, changed_values
from app.services.catalogs import CatalogService, get_catalog


def _render_csv(rows, columns) -> str:
    return "".join(CsvExporter().iter_chunks(rows, normalize_columns(columns)))


class AuditTrailTests(DbTestBase):
    def setUp(self):
        super().setUp()
        self.ana = self.make_user("Ana Pérez", "ana@example.com")
        self.luis = self.make_user("Luis Mora", "luis@example.com")
        for user, code in ((self.ana, "0001"), (self.luis, "0002")):
            ctx = AuditContext(user_id=user.id, url="http://testserver/api/catalogs/banks", ip_address="10.0.0.1")
            CatalogService(self.db, get_catalog("banks"), ctx).create({"code": code, "name": f"Banco {code}"})
        self.service = AuditService(self.db)

    def test_changed_values_keeps_only_differences(self):
        old, new = changed_values({"a": 1, "b": 2}, {"a": 1, "b": 3, "c": None, "d": 0})
        self.assertEqual(old, {"b": 2, "d": None})
        self.assertEqual(new, {"b": 3, "d": 0})
        self.assertTrue(audit_enabled("created"))
        self.assertFalse(audit_enabled("viewed"))

    def test_listing_is_newest_first_with_user(self):
        rows = self.service.list(ListQuery())["rows"]
        self.assertEqual(len(rows), 2)
        self.assertEqual({r["user_name"] for r in rows}, {"Ana Pérez", "Luis Mora"})
        self.assertEqual(rows[0]["auditable_type"], "Bank")

    def test_search_by_user_name(self):
        rows = self.service.list(ListQuery.from_params({"q": "mora"}))["rows"]
        self.assertEqual([r["user_email"] for r in rows], ["luis@example.com"])

    def test_filters(self):
        by_user = self.service.list(ListQuery.from_params({"filters": {"user_id": str(self.ana.id)}}))
        self.assertEqual(by_user["meta"]["total"], 1)
        by_event = self.service.list(ListQuery.from_params({"filters": {"event": ["created", "deleted"]}}))
        self.assertEqual(by_event["meta"]["total"], 2)
        none = self.service.list(ListQuery.from_params({"filters": {"event": "deleted"}}))
        self.assertEqual(none["meta"]["total"], 0)

    def test_export_lists_changed_fields(self):
        columns = {"event": "Evento", "user_name": "Usuario", "changes": "Campos"}
        lines = _render_csv(self.service.export_rows(ListQuery()), columns).splitlines()
        self.assertEqual(lines[0], "Evento,Usuario,Campos")
        self.assertEqual(len(lines), 3)
        self.assertIn("code", lines[1])
        self.assertIn("name", lines[1])
