from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, Iterator, Sequence, TypeVar

from sqlalchemy import Select, delete, func, inspect as sa_inspect, or_, select, update
from sqlalchemy.orm import RelationshipProperty, Session, selectinload

from app.core.config import settings
from app.core.exceptions import EntityNotFoundError, TransactionRequiredError
from app.db.session import in_transaction
from app.models.common import utcnow
from app.repositories.filters import coerce_count, coerce_filter_value, equals_clause, like_clause, range_clause
from app.schemas.queries import ListQuery, ShowQuery

ModelT = TypeVar("ModelT")
T = TypeVar("T")
FilterBuilder = Callable[[Select, Any], Select]

SYSTEM_FIELDS = {"id", "uuid", "created_at", "updated_at", "deleted_at"}

_LOG = logging.getLogger("app.repositories")


@dataclass
class Page(Generic[ModelT]):
    items: list[ModelT]
    total: int
    page: int
    per_page: int
    loaded_counts: list[str] = field(default_factory=list)

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page > 0 else 1

    @classmethod
    def empty(cls, per_page: int, page: int = 1) -> "Page[ModelT]":
        return cls(items=[], total=0, page=page, per_page=per_page)


class BaseRepository(Generic[ModelT]):
    """Generic list/lookup/mutation contract over one mapped model.

    Subclasses declare ``model`` and tune the class attributes below; custom
    filters go in :meth:`filter_map`. Write methods only flush: committing is
    the job of the caller (usually ``BaseService.transaction``).
    """

    model: type[ModelT]
    searchable: tuple[str, ...] = ()
    allowed_sorts: tuple[str, ...] = ("id", "created_at", "updated_at")
    default_sort: tuple[str, str] = ("id", "desc")
    active_column: str | None = "is_active"
    uuid_column: str = "uuid"
    default_with: tuple[str, ...] = ()
    default_with_count: tuple[str, ...] = ()
    fillable: tuple[str, ...] | None = None

    def __init__(self, db: Session):
        self.db = db

    # --- model introspection ---------------------------------------------

    @property
    def model_name(self) -> str:
        return self.model.__name__

    def _mapper(self):
        return sa_inspect(self.model)

    def column(self, name: str):
        if name in self._mapper().column_attrs.keys():
            return getattr(self.model, name)
        return None

    def relationship(self, name: str) -> RelationshipProperty | None:
        return self._mapper().relationships.get(name)

    @property
    def supports_soft_deletes(self) -> bool:
        return self.column("deleted_at") is not None

    @property
    def supports_uuid(self) -> bool:
        return self.column(self.uuid_column) is not None

    def fillable_columns(self) -> set[str]:
        if self.fillable is not None:
            return set(self.fillable)
        return {key for key in self._mapper().column_attrs.keys() if key not in SYSTEM_FIELDS}

    def _fillable_attrs(self, attrs: Mapping[str, Any]) -> dict[str, Any]:
        allowed = self.fillable_columns()
        return {k: v for k, v in attrs.items() if k in allowed}

    # --- hooks ----------------------------------------------------------

    def filter_map(self) -> dict[str, FilterBuilder]:
        return {}

    def with_relations(self, stmt: Select) -> Select:
        return stmt

    # --- statement building -----------------------------------------------

    def _base_select(self, with_trashed: bool = False) -> Select:
        stmt = select(self.model)
        if self.supports_soft_deletes and not with_trashed:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return stmt

    def _search_clause(self, field_name: str, q: str):
        if "." in field_name:
            rel_name, col_name = field_name.split(".", 1)
            prop = self.relationship(rel_name)
            if prop is None:
                return None
            target_col = getattr(prop.mapper.class_, col_name, None)
            if target_col is None:
                return None
            rel = getattr(self.model, rel_name)
            cond = like_clause(target_col, q)
            return rel.any(cond) if prop.uselist else rel.has(cond)
        col = self.column(field_name)
        if col is None:
            return None
        return like_clause(col, q)

    def apply_search(self, stmt: Select, q: str | None) -> Select:
        if not q or not self.searchable:
            return stmt
        clauses = [c for c in (self._search_clause(f, q) for f in self.searchable) if c is not None]
        if not clauses:
            return stmt
        return stmt.where(or_(*clauses))

    def apply_filters(self, stmt: Select, filters: Mapping[str, Any] | None) -> Select:
        custom = self.filter_map()
        for key, value in (filters or {}).items():
            if value is None:
                continue
            builder = custom.get(key)
            if builder is not None:
                stmt = builder(stmt, value)
                continue
            stmt = self._apply_standard_filter(stmt, key, value)
        return stmt

    def _range_column(self, base: str):
        col = self.column(base)
        if col is None:
            # created_between -> created_at
            col = self.column(f"{base}_at")
        return col

    def _apply_standard_filter(self, stmt: Select, key: str, value: Any) -> Select:
        if key.endswith("_like"):
            col = self.column(key[: -len("_like")])
            return stmt if col is None else stmt.where(like_clause(col, value))

        if key.endswith("_between"):
            col = self._range_column(key[: -len("_between")])
            if col is None or not isinstance(value, Mapping):
                return stmt
            clause = range_clause(col, value)
            return stmt if clause is None else stmt.where(clause)

        if key.endswith("_in"):
            col = self.column(key[: -len("_in")])
            if col is None:
                return stmt
            values = value if isinstance(value, (list, tuple, set)) else [value]
            return stmt.where(col.in_([coerce_filter_value(col, v) for v in values]))

        if key.endswith("_is"):
            col = self.column(key[: -len("_is")])
            mode = str(value).strip().lower()
            if col is None:
                return stmt
            if mode == "null":
                return stmt.where(col.is_(None))
            if mode == "notnull":
                return stmt.where(col.is_not(None))
            return stmt

        if key.endswith("_count") and self.column(key) is None:
            expr = self.count_expression(key[: -len("_count")])
            if expr is None:
                return stmt
            if isinstance(value, Mapping):
                if value.get("from") is not None:
                    stmt = stmt.where(expr >= coerce_count(key, value["from"]))
                if value.get("to") is not None:
                    stmt = stmt.where(expr <= coerce_count(key, value["to"]))
                return stmt
            return stmt.where(expr >= coerce_count(key, value))

        col = self.column(key)
        if col is None:
            return stmt
        clause = equals_clause(col, value)
        return stmt if clause is None else stmt.where(clause)

    def count_expression(self, relation: str):
        """Correlated ``COUNT(*)`` of related rows, skipping soft-deleted ones."""
        prop = self.relationship(relation)
        if prop is None:
            return None
        target = prop.mapper.class_
        stmt = select(func.count()).select_from(target)
        if prop.secondary is not None:
            stmt = stmt.join(prop.secondary, prop.secondaryjoin)
        stmt = stmt.where(prop.primaryjoin)
        if "deleted_at" in sa_inspect(target).column_attrs.keys():
            stmt = stmt.where(target.deleted_at.is_(None))
        return stmt.correlate(self.model).scalar_subquery()

    def _sort_expression(self, name: str):
        col = self.column(name)
        if col is not None:
            return col
        if name.endswith("_count"):
            return self.count_expression(name[: -len("_count")])
        return None

    def apply_sort(self, stmt: Select, sort: str | None, direction: str | None) -> Select:
        expr = None
        if sort and sort in self.allowed_sorts:
            expr = self._sort_expression(sort)
        if expr is None:
            sort, direction = self.default_sort
            expr = self._sort_expression(sort)
        direction = "asc" if direction == "asc" else "desc"
        stmt = stmt.order_by(expr.asc() if direction == "asc" else expr.desc())
        if sort != "id":
            # Stable paging when the sort column has duplicates.
            stmt = stmt.order_by(self.model.id.asc() if direction == "asc" else self.model.id.desc())
        return stmt

    def _eager_options(self, relations: Iterable[str]):
        options = []
        for path in relations:
            owner = self.model
            loader = None
            for part in str(path).split("."):
                prop = sa_inspect(owner).relationships.get(part)
                if prop is None:
                    loader = None
                    break
                attr = getattr(owner, part)
                loader = selectinload(attr) if loader is None else loader.selectinload(attr)
                owner = prop.mapper.class_
            if loader is not None:
                options.append(loader)
        return options

    def _merge(self, defaults: Sequence[str], extra: Iterable[str] | None) -> list[str]:
        out = list(defaults)
        for name in extra or ():
            if name not in out:
                out.append(name)
        return out

    def _with_loads(self, stmt: Select, with_: Iterable[str] | None, with_count: Iterable[str] | None):
        relations = self._merge(self.default_with, with_)
        counts = [c for c in self._merge(self.default_with_count, with_count) if self.relationship(c) is not None]
        options = self._eager_options(relations)
        if options:
            stmt = stmt.options(*options)
        for name in counts:
            stmt = stmt.add_columns(self.count_expression(name).label(f"{name}_count"))
        return self.with_relations(stmt), counts

    def _fetch(self, stmt: Select, counts: list[str]) -> list[ModelT]:
        if not counts:
            return list(self.db.scalars(stmt).unique().all())
        items: list[ModelT] = []
        for row in self.db.execute(stmt).unique().all():
            entity = row[0]
            for i, name in enumerate(counts, start=1):
                setattr(entity, f"{name}_count", int(row[i] or 0))
            entity._loaded_counts = list(counts)
            items.append(entity)
        return items

    def _count_rows(self, stmt: Select) -> int:
        return int(self.db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0)

    def filtered_select(self, query: ListQuery) -> Select:
        stmt = self._base_select()
        stmt = self.apply_search(stmt, query.q)
        return self.apply_filters(stmt, query.filters)

    # --- list reads -------------------------------------------------------

    def paginate(
        self,
        query: ListQuery,
        with_: Iterable[str] | None = None,
        with_count: Iterable[str] | None = None,
    ) -> Page[ModelT]:
        per_page = max(1, min(int(query.per_page), settings.LIST_MAX_PER_PAGE))
        page = max(1, int(query.page))
        _LOG.debug(
            "paginate model=%s q=%r page=%s per_page=%s sort=%s filters=%s",
            self.model_name,
            query.q,
            page,
            per_page,
            query.sort,
            sorted(query.filters),
        )

        stmt = self.filtered_select(query)
        total = self._count_rows(stmt)

        stmt, counts = self._with_loads(stmt, with_, with_count)
        stmt = self.apply_sort(stmt, query.sort, query.dir)
        stmt = stmt.offset((page - 1) * per_page).limit(per_page)
        return Page(items=self._fetch(stmt, counts), total=total, page=page, per_page=per_page, loaded_counts=counts)

    def iterate_chunks(self, query: ListQuery, chunk_size: int | None = None) -> Iterator[list[ModelT]]:
        """Every row matching ``query`` (ignoring its page), one chunk at a time."""
        size = max(1, int(chunk_size or settings.EXPORT_CHUNK_SIZE))
        stmt, counts = self._with_loads(self.filtered_select(query), None, None)
        stmt = self.apply_sort(stmt, query.sort, query.dir)
        offset = 0
        while True:
            chunk = self._fetch(stmt.offset(offset).limit(size), counts)
            if not chunk:
                return
            yield chunk
            if len(chunk) < size:
                return
            offset += size

    def iterate(self, query: ListQuery, chunk_size: int | None = None) -> Iterator[ModelT]:
        for chunk in self.iterate_chunks(query, chunk_size):
            yield from chunk

    def all(self, columns: Sequence[str] | None = None) -> list[Any]:
        if not columns:
            return list(self.db.scalars(self._base_select()).all())
        cols = [self.column(name) for name in columns]
        cols = [c for c in cols if c is not None]
        stmt = select(*cols)
        if self.supports_soft_deletes:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return [dict(row._mapping) for row in self.db.execute(stmt).all()]

    def paginate_by_ids_desc(
        self,
        ids: Sequence[int],
        per_page: int,
        with_: Iterable[str] | None = None,
        with_count: Iterable[str] | None = None,
        page: int = 1,
    ) -> Page[ModelT]:
        per_page = max(1, min(int(per_page), settings.LIST_MAX_PER_PAGE))
        page = max(1, int(page))
        if not ids:
            return Page.empty(per_page, page)
        stmt = self._base_select().where(self.model.id.in_(list(ids)))
        total = self._count_rows(stmt)
        stmt, counts = self._with_loads(stmt, with_, with_count)
        stmt = stmt.order_by(self.model.id.desc()).offset((page - 1) * per_page).limit(per_page)
        return Page(items=self._fetch(stmt, counts), total=total, page=page, per_page=per_page, loaded_counts=counts)

    # --- point reads ------------------------------------------------------

    def _parse_uuid(self, value) -> uuid.UUID | None:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value or "").strip())
        except ValueError:
            return None

    def _one(self, stmt: Select, counts: list[str] | None = None) -> ModelT | None:
        items = self._fetch(stmt.limit(1), counts or [])
        return items[0] if items else None

    def find_by_id(self, id: int, with_: Iterable[str] | None = None, with_trashed: bool = False) -> ModelT | None:
        stmt = self._base_select(with_trashed).where(self.model.id == id)
        options = self._eager_options(with_ or ())
        if options:
            stmt = stmt.options(*options)
        return self._one(stmt)

    def find_or_fail_by_id(self, id: int, with_: Iterable[str] | None = None, with_trashed: bool = False) -> ModelT:
        entity = self.find_by_id(id, with_, with_trashed)
        if entity is None:
            raise EntityNotFoundError(self.model_name, id)
        return entity

    def find_by_uuid(self, value, with_: Iterable[str] | None = None, with_trashed: bool = False) -> ModelT | None:
        parsed = self._parse_uuid(value)
        if parsed is None or not self.supports_uuid:
            return None
        stmt = self._base_select(with_trashed).where(self.column(self.uuid_column) == parsed)
        options = self._eager_options(with_ or ())
        if options:
            stmt = stmt.options(*options)
        return self._one(stmt)

    def find_or_fail_by_uuid(self, value, with_: Iterable[str] | None = None, with_trashed: bool = False) -> ModelT:
        entity = self.find_by_uuid(value, with_, with_trashed)
        if entity is None:
            raise EntityNotFoundError(self.model_name, value)
        return entity

    def apply_show_query(self, stmt: Select, query: ShowQuery) -> tuple[Select, list[str]]:
        return self._with_loads(stmt, query.with_, query.with_count)

    def show_by_id(self, id: int, query: ShowQuery) -> ModelT:
        stmt = self._base_select(query.with_trashed).where(self.model.id == id)
        stmt, counts = self.apply_show_query(stmt, query)
        entity = self._one(stmt, counts)
        if entity is None:
            raise EntityNotFoundError(self.model_name, id)
        return entity

    def show_by_uuid(self, value, query: ShowQuery) -> ModelT:
        parsed = self._parse_uuid(value)
        if parsed is None or not self.supports_uuid:
            raise EntityNotFoundError(self.model_name, value)
        stmt = self._base_select(query.with_trashed).where(self.column(self.uuid_column) == parsed)
        stmt, counts = self.apply_show_query(stmt, query)
        entity = self._one(stmt, counts)
        if entity is None:
            raise EntityNotFoundError(self.model_name, value)
        return entity

    def exists_by_id(self, id: int) -> bool:
        stmt = self._base_select().where(self.model.id == id)
        return bool(self.db.scalar(select(stmt.exists())))

    def exists_by_uuid(self, value) -> bool:
        parsed = self._parse_uuid(value)
        if parsed is None or not self.supports_uuid:
            return False
        stmt = self._base_select().where(self.column(self.uuid_column) == parsed)
        return bool(self.db.scalar(select(stmt.exists())))

    def count(self, filters: Mapping[str, Any] | None = None) -> int:
        return self._count_rows(self.apply_filters(self._base_select(), filters))

    # --- writes -----------------------------------------------------------

    def resolve(self, model_or_id, with_trashed: bool = False) -> ModelT:
        if isinstance(model_or_id, self.model):
            return model_or_id
        return self.find_or_fail_by_id(model_or_id, with_trashed=with_trashed)

    def create(self, attrs: Mapping[str, Any]) -> ModelT:
        entity = self.model(**self._fillable_attrs(attrs))
        self.db.add(entity)
        self.db.flush()
        return entity

    def create_many(self, rows: Iterable[Mapping[str, Any]]) -> list[ModelT]:
        entities = [self.model(**self._fillable_attrs(row)) for row in rows]
        if not entities:
            return []
        self.db.add_all(entities)
        self.db.flush()
        return entities

    def update(self, model_or_id, attrs: Mapping[str, Any]) -> ModelT:
        entity = self.resolve(model_or_id)
        for key, value in self._fillable_attrs(attrs).items():
            setattr(entity, key, value)
        self.db.flush()
        self.db.refresh(entity)
        return entity

    def _insert_defaults(self, row: Mapping[str, Any]) -> dict[str, Any]:
        out = dict(row)
        now = utcnow()
        if self.supports_uuid:
            out.setdefault(self.uuid_column, uuid.uuid4())
        for name in ("created_at", "updated_at"):
            if self.column(name) is not None:
                out.setdefault(name, now)
        return out

    def upsert(self, rows: Sequence[Mapping[str, Any]], unique_by: Sequence[str], update_columns: Sequence[str]) -> int:
        if not rows:
            return 0
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise NotImplementedError(f"upsert is not supported on {dialect}")

        stmt = insert(self.model.__table__).values([self._insert_defaults(r) for r in rows])
        set_ = {name: stmt.excluded[name] for name in update_columns}
        if self.column("updated_at") is not None and "updated_at" not in set_:
            set_["updated_at"] = utcnow()
        stmt = stmt.on_conflict_do_update(index_elements=list(unique_by), set_=set_)
        result = self.db.execute(stmt)
        self.db.expire_all()
        return int(result.rowcount or 0)

    def delete(self, model_or_id) -> bool:
        entity = self.resolve(model_or_id)
        if self.supports_soft_deletes:
            if entity.deleted_at is None:
                entity.deleted_at = utcnow()
        else:
            self.db.delete(entity)
        self.db.flush()
        return True

    def force_delete(self, model_or_id) -> bool:
        entity = self.resolve(model_or_id, with_trashed=True)
        self.db.delete(entity)
        self.db.flush()
        return True

    def restore(self, model_or_id) -> bool:
        if not self.supports_soft_deletes:
            return False
        entity = self.resolve(model_or_id, with_trashed=True)
        if entity.deleted_at is not None:
            entity.deleted_at = None
            self.db.flush()
        return True

    def set_active(self, model_or_id, active: bool) -> ModelT:
        if not self.active_column or self.column(self.active_column) is None:
            raise NotImplementedError(f"{self.model_name} has no active flag")
        entity = self.resolve(model_or_id)
        setattr(entity, self.active_column, bool(active))
        self.db.flush()
        self.db.refresh(entity)
        return entity

    # --- bulk -------------------------------------------------------------

    def _execute_bulk(self, stmt, *criteria) -> int:
        """Run a bulk UPDATE/DELETE over the rows matching ``criteria``; returns how many matched."""
        self.db.flush()
        ids = list(self.db.scalars(select(self.model.id).where(*criteria)))
        if not ids:
            return 0
        self.db.execute(stmt.where(self.model.id.in_(ids)).execution_options(synchronize_session="fetch"))
        return len(ids)

    def bulk_delete_by_ids(self, ids: Sequence[int]) -> int:
        if not ids:
            return 0
        if not self.supports_soft_deletes:
            return self.bulk_force_delete_by_ids(ids)
        now = utcnow()
        values = {"deleted_at": now}
        if self.column("updated_at") is not None:
            values["updated_at"] = now
        return self._execute_bulk(
            update(self.model).values(**values),
            self.model.id.in_(list(ids)),
            self.model.deleted_at.is_(None),
        )

    def bulk_force_delete_by_ids(self, ids: Sequence[int]) -> int:
        if not ids:
            return 0
        return self._execute_bulk(delete(self.model), self.model.id.in_(list(ids)))

    def bulk_restore_by_ids(self, ids: Sequence[int]) -> int:
        if not ids or not self.supports_soft_deletes:
            return 0
        values: dict[str, Any] = {"deleted_at": None}
        if self.column("updated_at") is not None:
            values["updated_at"] = utcnow()
        return self._execute_bulk(
            update(self.model).values(**values),
            self.model.id.in_(list(ids)),
            self.model.deleted_at.is_not(None),
        )

    def bulk_set_active_by_ids(self, ids: Sequence[int], active: bool) -> int:
        if not ids:
            return 0
        col = self.column(self.active_column) if self.active_column else None
        if col is None:
            raise NotImplementedError(f"{self.model_name} has no active flag")
        criteria = [self.model.id.in_(list(ids))]
        if self.supports_soft_deletes:
            criteria.append(self.model.deleted_at.is_(None))
        values = {self.active_column: bool(active)}
        if self.column("updated_at") is not None:
            values["updated_at"] = utcnow()
        return self._execute_bulk(update(self.model).values(**values), *criteria)

    def ids_for_uuids(self, uuids: Sequence[Any], with_trashed: bool = True) -> list[int]:
        parsed = [u for u in (self._parse_uuid(v) for v in uuids or ()) if u is not None]
        if not parsed or not self.supports_uuid:
            return []
        stmt = select(self.model.id).where(self.column(self.uuid_column).in_(parsed))
        if self.supports_soft_deletes and not with_trashed:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return list(self.db.scalars(stmt).all())

    def bulk_delete_by_uuids(self, uuids: Sequence[Any]) -> int:
        return self.bulk_delete_by_ids(self.ids_for_uuids(uuids))

    def bulk_force_delete_by_uuids(self, uuids: Sequence[Any]) -> int:
        return self.bulk_force_delete_by_ids(self.ids_for_uuids(uuids))

    def bulk_restore_by_uuids(self, uuids: Sequence[Any]) -> int:
        return self.bulk_restore_by_ids(self.ids_for_uuids(uuids))

    def bulk_set_active_by_uuids(self, uuids: Sequence[Any], active: bool) -> int:
        return self.bulk_set_active_by_ids(self.ids_for_uuids(uuids), active)

    # --- pessimistic locks ------------------------------------------------

    def _locked(self, stmt: Select, key) -> ModelT:
        if not in_transaction(self.db):
            raise TransactionRequiredError()
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
        entity = self.db.scalars(stmt).first()
        if entity is None:
            raise EntityNotFoundError(self.model_name, key)
        return entity

    def resolve_for_update(self, model_or_id) -> ModelT:
        """Re-read the row under ``FOR UPDATE``; identity-map copies get the stored values."""
        self.db.flush()
        id = model_or_id.id if isinstance(model_or_id, self.model) else model_or_id
        return self._locked(self._base_select().where(self.model.id == id), id)

    def with_pessimistic_lock_by_id(self, id: int, callback: Callable[[ModelT], T]) -> T:
        entity = self._locked(self._base_select().where(self.model.id == id), id)
        return callback(entity)

    def with_pessimistic_lock_by_uuid(self, value, callback: Callable[[ModelT], T]) -> T:
        if not in_transaction(self.db):
            raise TransactionRequiredError()
        parsed = self._parse_uuid(value)
        if parsed is None or not self.supports_uuid:
            raise EntityNotFoundError(self.model_name, value)
        entity = self._locked(self._base_select().where(self.column(self.uuid_column) == parsed), value)
        return callback(entity)
