from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "catalog-admin"
    LOG_LEVEL: str = "INFO"

    JWT_SECRET: str = "change_me_admin"
    JWT_TTL_MINUTES: int = 240

    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    DATABASE_URL: str = "sqlite+pysqlite:///./catalog_admin.db"

    # Listing / export
    LIST_DEFAULT_PER_PAGE: int = 15
    LIST_MAX_PER_PAGE: int = 100
    EXPORT_CHUNK_SIZE: int = 1000
    EXPORT_TRUE_LABEL: str = "Activo"
    EXPORT_FALSE_LABEL: str = "Inactivo"

    # Audit trail
    AUDIT_ENABLED: bool = True
    AUDIT_EVENTS: str = "created,updated,deleted,restored,force_deleted,permissions_sync,roles_sync"

    # Role rules
    ROLES_PROTECTED: str = "admin"
    ROLES_BLOCK_DEACTIVATE_PROTECTED: bool = True
    ROLES_BLOCK_DEACTIVATE_IF_HAS_USERS: bool = True

    ADMIN_BOOTSTRAP_ENABLED: bool = True
    ADMIN_BOOTSTRAP_EMAIL: str = "admin@example.com"
    ADMIN_BOOTSTRAP_PASSWORD: str = "admin123"
    ADMIN_BOOTSTRAP_NAME: str = "Administrador del sistema"

    # Compose/infra vars that may exist in shared .env
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "catalog_admin"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def audit_events_set(self) -> set[str]:
        return {e.strip() for e in self.AUDIT_EVENTS.split(",") if e.strip()}

    @property
    def protected_roles_list(self) -> List[str]:
        return [r.strip() for r in self.ROLES_PROTECTED.split(",") if r.strip()]

settings = Settings()
