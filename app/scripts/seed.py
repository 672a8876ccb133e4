from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.permissions import GUARD_NAME, all_permissions
from app.core.security import hash_password, verify_password
from app.data.catalog_seed import CATALOG_SEED
from app.db.session import SessionLocal, run_in_transaction
from app.models.permission import Permission
from app.models.role import Role
from app.models.user import User
from app.repositories.catalog import CatalogRepository
from app.services.catalogs import CatalogDefinition, get_catalog
from app.services.market import MARKETS

ADMIN_ROLE = "admin"


def seed_permissions(db: Session) -> tuple[int, int]:
    created = 0
    updated = 0
    existing = {p.name: p for p in db.scalars(select(Permission))}
    for name, description in all_permissions().items():
        row = existing.get(name)
        if row is None:
            db.add(Permission(name=name, guard_name=GUARD_NAME, description=description))
            created += 1
            continue
        if row.description != description:
            row.description = description
            updated += 1
    db.flush()
    return created, updated


def seed_admin_role(db: Session) -> Role:
    role = db.scalars(select(Role).where(Role.name == ADMIN_ROLE)).first()
    if role is None:
        role = Role(name=ADMIN_ROLE, guard_name=GUARD_NAME, description="Administrador", is_active=True)
        db.add(role)
    role.is_active = True
    role.permissions = list(db.scalars(select(Permission).order_by(Permission.name)))
    db.flush()
    return role


def seed_admin_user(db: Session, role: Role) -> User | None:
    if not settings.ADMIN_BOOTSTRAP_ENABLED:
        return None
    email = str(settings.ADMIN_BOOTSTRAP_EMAIL or "").strip().lower()
    password = str(settings.ADMIN_BOOTSTRAP_PASSWORD or "")
    user = db.scalars(select(User).where(User.email == email)).first()
    if user is None:
        user = User(
            name=str(settings.ADMIN_BOOTSTRAP_NAME or "Administrador"),
            email=email,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(user)
    else:
        user.is_active = True
        user.deleted_at = None
        if not verify_password(password, str(user.password_hash or "")):
            user.password_hash = hash_password(password)
    if role not in user.roles:
        user.roles.append(role)
    db.flush()
    return user


def _seed_definition(slug: str) -> CatalogDefinition:
    return MARKETS if slug == MARKETS.slug else get_catalog(slug)


def seed_catalogs(db: Session) -> dict[str, int]:
    out: dict[str, int] = {}
    for slug, rows in CATALOG_SEED.items():
        repo = CatalogRepository(db, _seed_definition(slug))
        update_columns = sorted({k for row in rows for k in row} - {"code"})
        repo.upsert(rows, unique_by=["code"], update_columns=update_columns)
        out[slug] = repo.count()
    return out


def run_seed(db: Session) -> dict:
    def _seed():
        created, updated = seed_permissions(db)
        role = seed_admin_role(db)
        user = seed_admin_user(db, role)
        return {
            "permissions_created": created,
            "permissions_updated": updated,
            "admin_user": user.email if user else None,
            "catalogs": seed_catalogs(db),
        }

    return run_in_transaction(db, _seed)


def main() -> None:
    db = SessionLocal()
    try:
        summary = run_seed(db)
    finally:
        db.close()
    print(f"seed done: {summary}")


if __name__ == "__main__":
    main()
