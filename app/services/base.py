from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Iterable, Iterator, Mapping, Sequence, TypeVar

from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import DomainActionError, StaleWriteError
from app.db.session import run_in_transaction
from app.exports.base import Columns, Exporter
from app.exports.registry import resolve_exporter
from app.repositories.base import BaseRepository, Page
from app.schemas.queries import ListQuery, ShowQuery
from app.services.audit_trail import SYSTEM_CONTEXT, AuditContext, changed_values, record_audit, snapshot
from app.services.serialization import HIDDEN_FIELDS, loaded_relations, raw_columns, relation_to_value, row_to_dict, serialize_value

ModelT = TypeVar("ModelT")
T = TypeVar("T")

_LOG = logging.getLogger("app.services")


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def to_utc_instant(value: Any) -> datetime | None:
    """Normalize a timestamp for optimistic-lock comparison.

    Accepts datetimes or ISO-8601 strings (``Z`` suffix included). Naive
    values are taken as UTC. Microseconds are kept, so two writes inside
    the same second still compare unequal.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise DomainActionError("Marca de tiempo inválida para control de concurrencia")
    if not isinstance(value, datetime):
        raise DomainActionError("Marca de tiempo inválida para control de concurrencia")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class BaseService(Generic[ModelT]):
    """Use-case layer over one repository.

    Shapes repository results for the HTTP layer, runs writes inside a
    transaction with audit entries, and exposes hooks for resource rules.
    """

    repository_class: type[BaseRepository]

    def __init__(self, db: Session, actor: AuditContext | None = None):
        self.db = db
        self.actor = actor or SYSTEM_CONTEXT
        self.repo: BaseRepository[ModelT] = self._make_repository()

    def _make_repository(self) -> BaseRepository[ModelT]:
        return self.repository_class(self.db)

    # --- hooks ------------------------------------------------------------

    def before_create(self, attrs: dict[str, Any]) -> dict[str, Any]:
        return attrs

    def after_create(self, entity: ModelT, attrs: dict[str, Any]) -> None:
        return None

    def before_update(self, entity: ModelT, attrs: dict[str, Any]) -> dict[str, Any]:
        return attrs

    def after_update(self, entity: ModelT, attrs: dict[str, Any]) -> None:
        return None

    def before_delete(self, entity: ModelT) -> None:
        return None

    def before_force_delete(self, entity: ModelT) -> None:
        return None

    def before_set_active(self, entity: ModelT, active: bool) -> None:
        return None

    def prepare_rows(self, entities: Sequence[ModelT]) -> None:
        """Batch-load whatever ``to_row`` looks up per entity; called with ``()`` to reset."""
        return None

    def _rows(self, entities: Sequence[ModelT], render: Callable[[ModelT], dict[str, Any]]) -> list[dict[str, Any]]:
        self.prepare_rows(entities)
        try:
            return [render(entity) for entity in entities]
        finally:
            self.prepare_rows(())

    def to_row(self, entity: ModelT) -> dict[str, Any]:
        row = row_to_dict(entity, hidden=HIDDEN_FIELDS)
        for name in getattr(entity, "_loaded_counts", None) or ():
            row[f"{name}_count"] = getattr(entity, f"{name}_count", 0)
        return row

    def to_item(self, entity: ModelT) -> dict[str, Any]:
        item = self.to_row(entity)
        for name in loaded_relations(entity):
            item[name] = relation_to_value(entity, name)
        return item

    def to_export_row(self, entity: ModelT) -> dict[str, Any]:
        row = self.to_row(entity)
        row.update(raw_columns(entity))
        return row

    def default_export_columns(self) -> Columns:
        return ["id"] + sorted(key for key in self.repo.fillable_columns() if key not in HIDDEN_FIELDS)

    def export_basename(self) -> str:
        return _snake(self.repo.model_name)

    def default_export_filename(self, exporter: Exporter) -> str:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        return f"{self.export_basename()}_export_{stamp}.{exporter.extension}"

    def index_extras(self) -> dict[str, Any]:
        stats: dict[str, Any] = {"total": self.repo.count()}
        if self.repo.active_column and self.repo.column(self.repo.active_column) is not None:
            stats["active"] = self.repo.count({self.repo.active_column: True})
        return {"stats": stats}

    # --- reads --------------------------------------------------------------

    def _page_payload(self, page: Page[ModelT]) -> dict[str, Any]:
        return {
            "rows": self._rows(page.items, self.to_row),
            "meta": {
                "currentPage": page.page,
                "page": page.page,
                "perPage": page.per_page,
                "total": page.total,
                "lastPage": page.last_page,
            },
        }

    def list(
        self,
        query: ListQuery,
        with_: Iterable[str] | None = None,
        with_count: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        return self._page_payload(self.repo.paginate(query, with_, with_count))

    def list_by_ids_desc(
        self,
        ids: Sequence[int],
        per_page: int,
        with_: Iterable[str] | None = None,
        with_count: Iterable[str] | None = None,
        page: int = 1,
    ) -> dict[str, Any]:
        return self._page_payload(self.repo.paginate_by_ids_desc(ids, per_page, with_, with_count, page=page))

    def export_rows(self, query: ListQuery) -> Iterator[dict[str, Any]]:
        try:
            for chunk in self.repo.iterate_chunks(query):
                yield from self._rows(chunk, self.to_export_row)
        finally:
            # Streaming may start after the request session was closed; give
            # back the connection it reopened.
            self.db.close()

    def export(
        self,
        query: ListQuery,
        format: str,
        columns: Columns | None = None,
        filename: str | None = None,
    ) -> StreamingResponse:
        exporter = resolve_exporter(format)
        cols = columns or self.default_export_columns()
        name = filename or self.default_export_filename(exporter)
        _LOG.info("export model=%s format=%s filters=%s", self.repo.model_name, exporter.format, sorted(query.filters))
        return exporter.stream(self.export_rows(query), cols, name)

    def get_by_id(self, id: int, with_: Iterable[str] | None = None) -> ModelT | None:
        return self.repo.find_by_id(id, with_)

    def get_or_fail_by_id(self, id: int, with_: Iterable[str] | None = None) -> ModelT:
        return self.repo.find_or_fail_by_id(id, with_)

    def get_by_uuid(self, value, with_: Iterable[str] | None = None) -> ModelT | None:
        return self.repo.find_by_uuid(value, with_)

    def get_or_fail_by_uuid(self, value, with_: Iterable[str] | None = None) -> ModelT:
        return self.repo.find_or_fail_by_uuid(value, with_)

    def _show_payload(self, entity: ModelT, query: ShowQuery) -> dict[str, Any]:
        item = self.to_item(entity)
        appended: list[str] = []
        for name in query.append:
            if not hasattr(entity, name):
                continue
            item[name] = serialize_value(getattr(entity, name))
            appended.append(name)
        return {
            "item": item,
            "meta": {
                "loaded_relations": loaded_relations(entity),
                "loaded_counts": list(getattr(entity, "_loaded_counts", None) or ()),
                "appended": appended,
            },
        }

    def show_by_id(self, id: int, query: ShowQuery) -> dict[str, Any]:
        return self._show_payload(self.repo.show_by_id(id, query), query)

    def show_by_uuid(self, value, query: ShowQuery) -> dict[str, Any]:
        return self._show_payload(self.repo.show_by_uuid(value, query), query)

    # --- writes -------------------------------------------------------------

    def transaction(self, callback: Callable[[], T]) -> T:
        return run_in_transaction(self.db, callback)

    def _audit(self, event: str, entity: ModelT, old: dict | None, new: dict | None, tags: str | None = None) -> None:
        record_audit(self.db, self.actor, event, entity, old, new, tags)

    def sync_relations(self, entity: ModelT, attrs: Mapping[str, Any]) -> list[str]:
        """Replace many-to-many collections given as ``<relation>_ids``."""
        synced: list[str] = []
        for key, value in attrs.items():
            if not key.endswith("_ids") or value is None:
                continue
            relation = key[: -len("_ids")]
            prop = self.repo.relationship(relation)
            if prop is None or prop.secondary is None:
                continue
            target = prop.mapper.class_
            ids = [int(v) for v in value]
            related = list(self.db.scalars(select(target).where(target.id.in_(ids)))) if ids else []
            setattr(entity, relation, related)
            synced.append(relation)
        if synced:
            self.db.flush()
        return synced

    def create(self, attrs: Mapping[str, Any]) -> ModelT:
        def _create():
            data = self.before_create(dict(attrs))
            entity = self.repo.create(data)
            self.sync_relations(entity, data)
            self._audit("created", entity, None, snapshot(entity))
            self.after_create(entity, data)
            return entity

        return self.transaction(_create)

    def create_many(self, rows: Iterable[Mapping[str, Any]]) -> list[ModelT]:
        def _create_many():
            return [self.create(row) for row in rows]

        return self.transaction(_create_many)

    def ensure_not_stale(self, entity: ModelT, expected_updated_at: Any) -> None:
        if expected_updated_at is None or getattr(entity, "updated_at", None) is None:
            return
        if to_utc_instant(entity.updated_at) != to_utc_instant(expected_updated_at):
            _LOG.warning(
                "stale write rejected model=%s id=%s",
                self.repo.model_name,
                getattr(entity, "id", None),
            )
            raise StaleWriteError()

    def update(self, model_or_id, attrs: Mapping[str, Any], expected_updated_at: Any = None) -> ModelT:
        def _update():
            entity = self.repo.resolve_for_update(model_or_id)
            self.ensure_not_stale(entity, expected_updated_at)
            old = snapshot(entity)
            data = self.before_update(entity, dict(attrs))
            entity = self.repo.update(entity, data)
            self.sync_relations(entity, data)
            self.after_update(entity, data)
            old_changed, new_changed = changed_values(old, snapshot(entity))
            if new_changed:
                self._audit("updated", entity, old_changed, new_changed)
            return entity

        return self.transaction(_update)

    def upsert(self, rows: Sequence[Mapping[str, Any]], unique_by: Sequence[str], update_columns: Sequence[str]) -> int:
        return self.transaction(lambda: self.repo.upsert(rows, unique_by, update_columns))

    def delete(self, model_or_id) -> bool:
        def _delete():
            entity = self.repo.resolve(model_or_id)
            self.before_delete(entity)
            old = snapshot(entity)
            deleted = self.repo.delete(entity)
            if deleted:
                self._audit("deleted", entity, old, None)
            return deleted

        return self.transaction(_delete)

    def force_delete(self, model_or_id) -> bool:
        def _force_delete():
            entity = self.repo.resolve(model_or_id, with_trashed=True)
            self.before_force_delete(entity)
            old = snapshot(entity)
            self._audit("force_deleted", entity, old, None)
            return self.repo.force_delete(entity)

        return self.transaction(_force_delete)

    def restore(self, model_or_id) -> bool:
        def _restore():
            if not self.repo.supports_soft_deletes:
                return False
            entity = self.repo.resolve(model_or_id, with_trashed=True)
            was_trashed = entity.deleted_at is not None
            restored = self.repo.restore(entity)
            if restored and was_trashed:
                self._audit("restored", entity, None, snapshot(entity))
            return restored

        return self.transaction(_restore)

    def set_active(self, model_or_id, active: bool) -> ModelT:
        def _set_active():
            entity = self.repo.resolve(model_or_id)
            self.before_set_active(entity, bool(active))
            column = self.repo.active_column
            old_value = getattr(entity, column, None) if column else None
            entity = self.repo.set_active(entity, active)
            if old_value != bool(active):
                self._audit("updated", entity, {column: old_value}, {column: bool(active)})
            return entity

        return self.transaction(_set_active)

    # --- bulk ---------------------------------------------------------------

    def bulk_delete_by_ids(self, ids: Sequence[int]) -> int:
        return self.transaction(lambda: self.repo.bulk_delete_by_ids(ids))

    def bulk_force_delete_by_ids(self, ids: Sequence[int]) -> int:
        return self.transaction(lambda: self.repo.bulk_force_delete_by_ids(ids))

    def bulk_restore_by_ids(self, ids: Sequence[int]) -> int:
        return self.transaction(lambda: self.repo.bulk_restore_by_ids(ids))

    def bulk_set_active_by_ids(self, ids: Sequence[int], active: bool) -> int:
        return self.transaction(lambda: self.repo.bulk_set_active_by_ids(ids, active))

    def bulk_delete_by_uuids(self, uuids: Sequence[Any]) -> int:
        return self.bulk_delete_by_ids(self.repo.ids_for_uuids(uuids))

    def bulk_force_delete_by_uuids(self, uuids: Sequence[Any]) -> int:
        return self.bulk_force_delete_by_ids(self.repo.ids_for_uuids(uuids))

    def bulk_restore_by_uuids(self, uuids: Sequence[Any]) -> int:
        return self.bulk_restore_by_ids(self.repo.ids_for_uuids(uuids))

    def bulk_set_active_by_uuids(self, uuids: Sequence[Any], active: bool) -> int:
        return self.bulk_set_active_by_ids(self.repo.ids_for_uuids(uuids), active)

    # --- locks --------------------------------------------------------------

    def with_pessimistic_lock_by_id(self, id: int, callback: Callable[[ModelT], T]) -> T:
        return self.repo.with_pessimistic_lock_by_id(id, callback)

    def with_pessimistic_lock_by_uuid(self, value, callback: Callable[[ModelT], T]) -> T:
        return self.repo.with_pessimistic_lock_by_uuid(value, callback)
