from __future__ import annotations

GUARD_NAME = "web"

CRUD_ACTIONS = ("view", "create", "update", "delete", "restore", "forceDelete", "export", "setActive")

_ACTION_VERBS = {
    "view": "Ver",
    "create": "Crear",
    "update": "Actualizar",
    "delete": "Eliminar",
    "restore": "Restaurar",
    "forceDelete": "Eliminar permanentemente",
    "export": "Exportar",
    "setActive": "Activar/desactivar",
}

# prefix -> (subject used in descriptions, actions)
MODULES: dict[str, tuple[str, tuple[str, ...]]] = {
    "roles": ("roles", CRUD_ACTIONS),
    "users": ("usuarios", CRUD_ACTIONS),
    "auditoria": ("registros de auditoría", ("view", "export")),
    "concessionaire": ("concesionarios", CRUD_ACTIONS),
    "bank": ("bancos", CRUD_ACTIONS),
    "concessionaire_type": ("tipos de concesionario", CRUD_ACTIONS),
    "document_type": ("tipos de documento", CRUD_ACTIONS),
    "expense_type": ("tipos de gasto", CRUD_ACTIONS),
    "payment_status": ("estados de pago", CRUD_ACTIONS),
    "payment_type": ("tipos de pago", CRUD_ACTIONS),
    "phone_area_code": ("códigos de área", CRUD_ACTIONS),
    "trade_category": ("categorías comerciales", CRUD_ACTIONS),
    "market": ("mercados", CRUD_ACTIONS),
    "local": ("locales", CRUD_ACTIONS),
    "local_location": ("ubicaciones de local", CRUD_ACTIONS),
    "local_status": ("estados de local", CRUD_ACTIONS),
    "local_type": ("tipos de local", CRUD_ACTIONS),
    "contract_modality": ("modalidades de contrato", CRUD_ACTIONS),
    "contract_status": ("estados de contrato", CRUD_ACTIONS),
    "contract_type": ("tipos de contrato", CRUD_ACTIONS),
}


def permission_name(prefix: str, action: str) -> str:
    return f"{prefix}.{action}"


def all_permissions() -> dict[str, str]:
    """Every permission name mapped to its description, in declaration order."""
    out: dict[str, str] = {}
    for prefix, (subject, actions) in MODULES.items():
        for action in actions:
            out[permission_name(prefix, action)] = f"{_ACTION_VERBS[action]} {subject}"
    return out
