from sqlalchemy import Select, exists, select

from app.repositories.base import BaseRepository, FilterBuilder
from app.repositories.filters import coerce_filter_value, like_clause


class CatalogRepository(BaseRepository):
    """One repository class shared by every reference-data catalog.

    The catalog definition supplies the model, search columns and the tables
    that reference it.
    """

    allowed_sorts = ("id", "code", "name", "is_active", "created_at", "updated_at")

    def __init__(self, db, definition):
        super().__init__(db)
        self.definition = definition
        self.model = definition.model
        self.searchable = definition.searchable

    def filter_map(self) -> dict[str, FilterBuilder]:
        model = self.model

        def code(stmt: Select, value) -> Select:
            return stmt.where(like_clause(model.code, value))

        def is_active(stmt: Select, value) -> Select:
            return stmt.where(model.is_active == coerce_filter_value(model.is_active, value))

        filters = {"code": code, "is_active": is_active}
        if self.column("name") is not None:
            filters["name"] = lambda stmt, value: stmt.where(like_clause(model.name, value))
        return filters

    def _referenced(self, dependent, entity_id, include_trashed: bool):
        fk = getattr(dependent.model, dependent.column)
        clause = fk == entity_id
        if not include_trashed and hasattr(dependent.model, "deleted_at"):
            clause = clause & dependent.model.deleted_at.is_(None)
        return clause

    def blocking_dependent(self, entity_id: int, include_trashed: bool = False):
        """First dependent table still referencing ``entity_id``, or None."""
        for dependent in self.definition.dependents:
            if self.db.scalar(select(exists().where(self._referenced(dependent, entity_id, include_trashed)))):
                return dependent
        return None

    def referenced_ids(self, ids, include_trashed: bool = False) -> set[int]:
        if not ids:
            return set()
        found: set[int] = set()
        for dependent in self.definition.dependents:
            fk = getattr(dependent.model, dependent.column)
            stmt = select(fk).where(fk.in_(list(ids))).distinct()
            if not include_trashed and hasattr(dependent.model, "deleted_at"):
                stmt = stmt.where(dependent.model.deleted_at.is_(None))
            found.update(self.db.scalars(stmt).all())
        return found
