from datetime import datetime, timezone

from tests.base import *  # noqa: F401,F403

from app.core.exceptions import DomainActionError
from app.models.concessionaire_type import ConcessionaireType
from app.schemas.queries import ListQuery
from app.services.catalogs import CATALOGS, CatalogService, get_catalog


class CatalogRegistryTests(unittest.TestCase):
    def test_known_slugs(self):
        self.assertEqual(
            sorted(CATALOGS),
            [
                "banks",
                "concessionaire-types",
                "contract-modalities",
                "contract-statuses",
                "contract-types",
                "document-types",
                "expense-types",
                "local-locations",
                "local-statuses",
                "local-types",
                "payment-statuses",
                "payment-types",
                "phone-area-codes",
                "trade-categories",
            ],
        )
        self.assertEqual(get_catalog("banks").permission, "bank")

    def test_unknown_slug(self):
        with self.assertRaises(KeyError):
            get_catalog("planets")


class CatalogServiceTests(DbTestBase):
    def setUp(self):
        super().setUp()
        self.types = CatalogService(self.db, get_catalog("concessionaire-types"))
        self.natural = self._catalog(ConcessionaireType, "PNAT", name="Persona Natural")
        self.legal = self._catalog(ConcessionaireType, "PJUR", name="Persona Jurídica")

    def test_referenced_row_cannot_be_deleted(self):
        self.make_concessionaire("ana@example.com", concessionaire_type=self.natural)
        with self.assertRaises(DomainActionError) as ctx:
            self.types.delete(self.natural.id)
        self.assertIn("concesionarios", ctx.exception.detail)
        self.assertIsNotNone(self.types.get_by_id(self.natural.id))

    def test_trashed_dependents_block_force_delete_only(self):
        owner = self.make_concessionaire("ana@example.com", concessionaire_type=self.natural)
        owner.deleted_at = datetime.now(timezone.utc)
        self.db.commit()

        with self.assertRaises(DomainActionError):
            self.types.force_delete(self.natural.id)
        self.assertTrue(self.types.delete(self.natural.id))

    def test_unreferenced_row_can_be_force_deleted(self):
        self.assertTrue(self.types.force_delete(self.legal.id))
        self.assertIsNone(self.types.repo.find_by_id(self.legal.id, with_trashed=True))

    def test_bulk_delete_skips_referenced_rows(self):
        self.make_concessionaire("ana@example.com", concessionaire_type=self.natural)
        self.assertEqual(self.types.bulk_delete_by_ids([self.natural.id, self.legal.id]), 1)
        self.db.expire_all()
        self.assertIsNotNone(self.types.get_by_id(self.natural.id))
        self.assertIsNone(self.types.get_by_id(self.legal.id))

    def test_rows_report_in_use(self):
        self.make_concessionaire("ana@example.com", concessionaire_type=self.natural)
        rows = self.types.list(ListQuery.from_params({"sort": "code", "dir": "asc"}))["rows"]
        self.assertEqual([(r["code"], r["in_use"]) for r in rows], [("PJUR", False), ("PNAT", True)])

    def test_catalog_without_dependents_is_never_in_use(self):
        banks = CatalogService(self.db, get_catalog("banks"))
        self.make_bank("0102", "Banco de Venezuela")
        self.assertFalse(banks.list(ListQuery())["rows"][0]["in_use"])

    def test_deactivating_referenced_row_is_allowed(self):
        self.make_concessionaire("ana@example.com", concessionaire_type=self.natural)
        updated = self.types.set_active(self.natural.id, False)
        self.assertFalse(updated.is_active)

    def test_filters_by_code_and_active(self):
        self.types.set_active(self.legal.id, False)
        by_code = self.types.list(ListQuery.from_params({"filters": {"code": "pjur"}}))["rows"]
        self.assertEqual([r["code"] for r in by_code], ["PJUR"])
        active = self.types.list(ListQuery.from_params({"filters": {"is_active": "1"}}))["rows"]
        self.assertEqual([r["code"] for r in active], ["PNAT"])

    def test_export_basename_uses_slug(self):
        self.assertEqual(self.types.export_basename(), "concessionaire_types")

    def test_in_use_is_loaded_once_per_page(self):
        self.make_concessionaire("ana@example.com", concessionaire_type=self.natural)
        query = ListQuery.from_params({"per_page": 50})
        with self.count_statements() as few:
            self.types.list(query)
        for code in ("T1", "T2", "T3", "T4"):
            self._catalog(ConcessionaireType, code, name=f"Tipo {code}")
        with self.count_statements() as many:
            rows = self.types.list(query)["rows"]
        self.assertEqual(len(rows), 6)
        self.assertEqual(len(many), len(few))
        self.assertEqual([r["code"] for r in rows if r["in_use"]], ["PNAT"])

    def test_export_rows_report_in_use(self):
        self.make_concessionaire("ana@example.com", concessionaire_type=self.natural)
        rows = list(self.types.export_rows(ListQuery.from_params({"sort": "code", "dir": "asc"})))
        self.assertEqual([(r["code"], r["in_use"]) for r in rows], [("PJUR", False), ("PNAT", True)])
