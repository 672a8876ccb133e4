from tests.base import *  # noqa: F401,F403

from app.models.concessionaire_type import ConcessionaireType
from app.schemas.queries import ListQuery, ShowQuery
from app.services.concessionaire import ConcessionaireService


class ConcessionaireServiceTests(DbTestBase):
    def setUp(self):
        super().setUp()
        self.service = ConcessionaireService(self.db)

    def test_default_sort_is_full_name_ascending(self):
        self.make_concessionaire("c@example.com", full_name="Carlos Ruiz")
        self.make_concessionaire("a@example.com", full_name="Ana Pérez")
        self.make_concessionaire("b@example.com", full_name="Beatriz Gil")
        rows = self.service.list(ListQuery())["rows"]
        self.assertEqual([r["full_name"] for r in rows], ["Ana Pérez", "Beatriz Gil", "Carlos Ruiz"])

    def test_search_by_document_number(self):
        self.make_concessionaire("a@example.com", document_number="11222333")
        self.make_concessionaire("b@example.com", full_name="Beatriz Gil", document_number="99888777")
        rows = self.service.list(ListQuery.from_params({"q": "888"}))["rows"]
        self.assertEqual([r["email"] for r in rows], ["b@example.com"])

    def test_filter_by_type(self):
        legal = self._catalog(ConcessionaireType, "PJUR", name="Persona Jurídica")
        self.make_concessionaire("a@example.com")
        self.make_concessionaire("b@example.com", full_name="Comercial C.A.", concessionaire_type=legal)
        rows = self.service.list(ListQuery.from_params({"filters": {"concessionaire_type_id": [str(legal.id)]}}))["rows"]
        self.assertEqual([r["full_name"] for r in rows], ["Comercial C.A."])

    def test_row_includes_display_fields(self):
        self.make_concessionaire("a@example.com", document_number="11222333", phone_number="5551234")
        row = self.service.list(ListQuery())["rows"][0]
        self.assertEqual(row["document"], "V-11222333")
        self.assertEqual(row["full_phone"], "0412-5551234")
        self.assertEqual(row["concessionaire_type_name"], "Persona Natural")

    def test_missing_phone_gives_no_full_phone(self):
        row = self.make_concessionaire("a@example.com", phone_number=None)
        self.assertIsNone(row.full_phone)

    def test_create_lowercases_email(self):
        seed = self.make_concessionaire("seed@example.com")
        created = self.service.create(
            {
                "concessionaire_type_id": seed.concessionaire_type_id,
                "document_type_id": seed.document_type_id,
                "full_name": "Luis Mora",
                "document_number": "22333444",
                "fiscal_address": "Calle 1",
                "email": "Luis.Mora@Example.com",
            }
        )
        self.assertEqual(created.email, "luis.mora@example.com")

    def test_show_with_relations_and_append(self):
        entity = self.make_concessionaire("a@example.com")
        payload = self.service.show_by_id(entity.id, ShowQuery.from_params({"append": ["full_phone"]}))
        self.assertEqual(payload["item"]["full_phone"], "0412-1234567")
        self.assertEqual(payload["item"]["document_type"]["code"], "V")
        self.assertIn("concessionaire_type", payload["meta"]["loaded_relations"])
        self.assertEqual(payload["meta"]["appended"], ["full_phone"])
