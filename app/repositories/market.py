from sqlalchemy import select

from app.models.local import Local
from app.repositories.catalog import CatalogRepository


class MarketRepository(CatalogRepository):
    allowed_sorts = ("id", "code", "name", "is_active", "locals_count", "created_at", "updated_at")
    default_sort = ("name", "asc")
    default_with_count = ("locals",)

    def local_codes_by_market(self, market_ids) -> dict[int, list[str]]:
        """Codes of the live locals of each market, in one query."""
        out: dict[int, list[str]] = {int(i): [] for i in market_ids or ()}
        if not out:
            return out
        stmt = (
            select(Local.market_id, Local.code)
            .where(Local.market_id.in_(list(out)), Local.deleted_at.is_(None))
            .order_by(Local.market_id, Local.code)
        )
        for market_id, code in self.db.execute(stmt):
            out[market_id].append(code)
        return out
