from datetime import datetime, timezone
from decimal import Decimal

from tests.base import *  # noqa: F401,F403

from pydantic import ValidationError

from app.core.exceptions import DomainActionError
from app.models.local import Local
from app.models.local_location import LocalLocation
from app.models.local_status import LocalStatus
from app.models.local_type import LocalType
from app.models.market import Market
from app.schemas.queries import ListQuery
from app.schemas.resources import LocalCreate, LocalUpdate
from app.services.local import LocalService
from app.services.market import MarketService


class MarketLocalFixtures(DbTestBase):
    def setUp(self):
        super().setUp()
        self.market = self._catalog(Market, "MERCACH", name="Sede Principal")
        self.kiosk = self._catalog(LocalType, "KIOSKO", name="Kiosko")
        self.ground = self._catalog(LocalLocation, "PB", name="Planta baja")
        self.free = self._catalog(LocalStatus, "DISP", name="Disponible")
        self.taken = self._catalog(LocalStatus, "OCUP", name="Ocupado")

    def make_local(self, code: str, market: Market | None = None, area: str = "12.50", **overrides) -> Local:
        row = Local(
            code=code,
            name=overrides.pop("name", f"Local {code}"),
            market_id=(market or self.market).id,
            local_type_id=self.kiosk.id,
            local_location_id=self.ground.id,
            local_status_id=overrides.pop("local_status_id", self.free.id),
            area_m2=Decimal(area),
            **overrides,
        )
        self.db.add(row)
        self.db.commit()
        return row


class MarketServiceTests(MarketLocalFixtures):
    def setUp(self):
        super().setUp()
        self.markets = MarketService(self.db)

    def test_code_is_frozen_once_locals_exist(self):
        self.make_local("A-01")
        with self.assertRaises(DomainActionError):
            self.markets.update(self.market.id, {"code": "OTRO"})
        updated = self.markets.update(self.market.id, {"name": "Sede Chacao", "code": " mercach "})
        self.assertEqual((updated.code, updated.name), ("MERCACH", "Sede Chacao"))

    def test_code_can_change_without_locals(self):
        updated = self.markets.update(self.market.id, {"code": "mercach2"})
        self.assertEqual(updated.code, "MERCACH2")

    def test_market_with_locals_cannot_be_deleted(self):
        empty = self._catalog(Market, "MERCAB", name="Anexo")
        self.make_local("A-01")
        with self.assertRaises(DomainActionError) as ctx:
            self.markets.delete(self.market.id)
        self.assertIn("locales", ctx.exception.detail)
        self.assertEqual(self.markets.bulk_delete_by_ids([self.market.id, empty.id]), 1)
        self.db.expire_all()
        self.assertIsNotNone(self.markets.get_by_id(self.market.id))
        self.assertIsNone(self.markets.get_by_id(empty.id))

    def test_rows_list_live_local_codes(self):
        self.make_local("B-02")
        self.make_local("A-01")
        self.make_local("C-03", deleted_at=datetime.now(timezone.utc))
        rows = self.markets.list(ListQuery())["rows"]
        self.assertEqual(rows[0]["locals"], ["A-01", "B-02"])
        self.assertEqual(rows[0]["locals_count"], 2)
        self.assertTrue(rows[0]["in_use"])

    def test_local_codes_are_loaded_once_per_page(self):
        self.make_local("A-01")
        query = ListQuery.from_params({"per_page": 50})
        with self.count_statements() as few:
            self.markets.list(query)
        for index, code in enumerate(("MERC2", "MERC3", "MERC4"), start=2):
            market = self._catalog(Market, code, name=f"Mercado {index}")
            self.make_local(f"D-0{index}", market=market)
        with self.count_statements() as many:
            rows = self.markets.list(query)["rows"]
        self.assertEqual(len(rows), 4)
        self.assertEqual(len(many), len(few))

    def test_item_includes_loaded_locals(self):
        self.make_local("A-01")
        self.db.expire_all()
        entity = self.markets.get_or_fail_by_id(self.market.id, with_=["locals"])
        item = self.markets.to_item(entity)
        self.assertEqual([local["code"] for local in item["locals"]], ["A-01"])


class LocalServiceTests(MarketLocalFixtures):
    def setUp(self):
        super().setUp()
        self.locals = LocalService(self.db)

    def _attrs(self, code: str, **overrides) -> dict:
        attrs = {
            "code": code,
            "name": f"Local {code}",
            "market_id": self.market.id,
            "local_type_id": self.kiosk.id,
            "local_location_id": self.ground.id,
            "area_m2": Decimal("20.00"),
        }
        attrs.update(overrides)
        return attrs

    def test_new_local_starts_available(self):
        created = self.locals.create(self._attrs(" a-01 "))
        self.assertEqual(created.code, "A-01")
        self.assertEqual(created.local_status_id, self.free.id)

    def test_explicit_status_is_kept(self):
        created = self.locals.create(self._attrs("A-02", local_status_id=self.taken.id))
        self.assertEqual(created.local_status_id, self.taken.id)

    def test_default_status_falls_back_to_name(self):
        self.free.code = "LIBRE"
        self.db.commit()
        self.assertEqual(self.locals.default_status_id(), self.free.id)

    def test_missing_default_status_is_refused(self):
        self.free.deleted_at = datetime.now(timezone.utc)
        self.db.commit()
        with self.assertRaises(DomainActionError) as ctx:
            self.locals.create(self._attrs("A-03"))
        self.assertIn("DISP", ctx.exception.detail)

    def test_rows_carry_relation_names(self):
        self.make_local("A-01")
        row = self.locals.list(ListQuery())["rows"][0]
        self.assertEqual(row["market_name"], "Sede Principal")
        self.assertEqual(row["local_type_name"], "Kiosko")
        self.assertEqual(row["local_status_name"], "Disponible")
        self.assertEqual(row["local_location_name"], "Planta baja")
        self.assertEqual(row["area_m2"], 12.5)

    def test_foreign_key_and_area_filters(self):
        annex = self._catalog(Market, "MERCAB", name="Anexo")
        self.make_local("A-01", area="10.00")
        self.make_local("A-02", area="30.00", local_status_id=self.taken.id)
        self.make_local("B-01", market=annex, area="25.00")

        by_market = self.locals.list(ListQuery.from_params({"filters": {"market_id": [annex.id]}}))["rows"]
        self.assertEqual([r["code"] for r in by_market], ["B-01"])
        by_status = self.locals.list(ListQuery.from_params({"filters": {"local_status_id": self.taken.id}}))["rows"]
        self.assertEqual([r["code"] for r in by_status], ["A-02"])
        by_area = self.locals.list(ListQuery.from_params({"filters": {"area_m2_between": {"from": 20, "to": 30}}}))["rows"]
        self.assertEqual([r["code"] for r in by_area], ["A-02", "B-01"])

    def test_trashed_local_frees_its_code(self):
        first = self.make_local("A-01")
        self.locals.delete(first.id)
        again = self.locals.create(self._attrs("A-01"))
        self.assertNotEqual(again.id, first.id)

    def test_filter_options_list_active_rows(self):
        self._catalog(LocalType, "BATEA", name="Batea", is_active=False)
        options = self.locals.index_extras()["filterOptions"]
        self.assertEqual(options["markets"], [{"id": self.market.id, "name": "Sede Principal"}])
        self.assertEqual([o["name"] for o in options["local_types"]], ["Kiosko"])
        self.assertEqual([o["name"] for o in options["local_statuses"]], ["Disponible", "Ocupado"])


class LocalSchemaTests(unittest.TestCase):
    def _payload(self, **overrides) -> dict:
        payload = {"code": "a-01", "name": "Kiosko 1", "market_id": 1, "local_type_id": 1, "local_location_id": 1, "area_m2": "12.5"}
        payload.update(overrides)
        return payload

    def test_code_is_upper_cased(self):
        self.assertEqual(LocalCreate(**self._payload()).code, "A-01")

    def test_code_format_is_enforced(self):
        for code in ("A01", "AB-01", "A-1", ""):
            with self.assertRaises(ValidationError):
                LocalCreate(**self._payload(code=code))

    def test_area_cannot_be_negative(self):
        with self.assertRaises(ValidationError):
            LocalCreate(**self._payload(area_m2="-1"))

    def test_update_accepts_partial_payload(self):
        self.assertEqual(LocalUpdate(code="b-02").model_dump(exclude_unset=True), {"code": "B-02"})


class MarketLocalApiTests(ApiTestBase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user_with_permissions(
            "admin@example.com",
            ["market.view", "market.create", "market.update", "local.view", "local.create"],
        )
        self.headers = self._auth_headers(self.user.id)
        self.kiosk = self._catalog(LocalType, "KIOSKO", name="Kiosko")
        self.ground = self._catalog(LocalLocation, "PB", name="Planta baja")
        self._catalog(LocalStatus, "DISP", name="Disponible")

    def test_create_market_and_local(self):
        market = self.client.post(
            "/api/catalogs/markets",
            json={"code": "mercach", "name": "Sede Principal", "address": "Calle Urdaneta"},
            headers=self.headers,
        )
        self.assertEqual(market.status_code, 201, market.text)
        market_id = market.json()["item"]["id"]
        self.assertEqual(market.json()["item"]["code"], "MERCACH")

        local = self.client.post(
            "/api/catalogs/locals",
            json={
                "code": "a-01",
                "name": "Kiosko 1",
                "market_id": market_id,
                "local_type_id": self.kiosk.id,
                "local_location_id": self.ground.id,
                "area_m2": 12.5,
            },
            headers=self.headers,
        )
        self.assertEqual(local.status_code, 201, local.text)
        self.assertEqual(local.json()["item"]["code"], "A-01")

        listing = self.client.get("/api/catalogs/locals", headers=self.headers).json()
        self.assertEqual([r["market_name"] for r in listing["rows"]], ["Sede Principal"])
        self.assertIn("filterOptions", listing["extras"])

        markets = self.client.get("/api/catalogs/markets", headers=self.headers).json()
        self.assertEqual(markets["rows"][0]["locals"], ["A-01"])

        shown = self.client.get(f"/api/catalogs/markets/{market_id}", params={"with[]": "locals"}, headers=self.headers)
        self.assertEqual(shown.status_code, 200, shown.text)
        self.assertEqual([local["code"] for local in shown.json()["item"]["locals"]], ["A-01"])

    def test_bad_local_code_is_422(self):
        response = self.client.post(
            "/api/catalogs/locals",
            json={"code": "A1", "name": "X", "market_id": 1, "local_type_id": 1, "local_location_id": 1, "area_m2": 1},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 422)

    def test_locals_need_their_own_permission(self):
        viewer = self.make_user_with_permissions("viewer@example.com", ["market.view"])
        response = self.client.get("/api/catalogs/locals", headers=self._auth_headers(viewer.id))
        self.assertEqual(response.status_code, 403)
