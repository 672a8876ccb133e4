"""Reference data loaded by ``python -m app.scripts.seed``."""

CATALOG_SEED: dict[str, list[dict]] = {
    "document-types": [
        {"code": "V", "name": "Venezolano", "mask": None},
        {"code": "E", "name": "Extranjero", "mask": None},
        {"code": "J", "name": "Juridico", "mask": None},
        {"code": "P", "name": "Pasaporte", "mask": None},
    ],
    "banks": [
        {"code": "0110", "name": "Banco Mercantil", "swift_bic": None},
        {"code": "0102", "name": "Banco de Venezuela", "swift_bic": None},
        {"code": "0108", "name": "Banco Provincial", "swift_bic": None},
    ],
    "concessionaire-types": [
        {"code": "PNAT", "name": "Persona Natural"},
        {"code": "PJUR", "name": "Persona Juridica"},
    ],
    "expense-types": [
        {"code": "ELECT", "name": "Electricidad", "description": None},
        {"code": "AGUA", "name": "Agua", "description": None},
        {"code": "ASEO", "name": "Aseo", "description": None},
        {"code": "INET", "name": "Internet", "description": None},
    ],
    "payment-statuses": [
        {"code": "REG", "name": "Registrado"},
        {"code": "CONF", "name": "Confirmado"},
        {"code": "CONC", "name": "Conciliado"},
    ],
    "payment-types": [
        {"code": "DEB", "name": "Debito"},
        {"code": "PMOV", "name": "Pago movil"},
    ],
    "phone-area-codes": [
        {"code": "0412"},  # Digitel
        {"code": "0422"},
        {"code": "0416"},  # Movilnet
        {"code": "0426"},
        {"code": "0414"},  # Movistar
        {"code": "0424"},
    ],
    "trade-categories": [
        {"code": "PAPAS", "name": "Papas", "description": None},
        {"code": "HUEVOS", "name": "Huevos", "description": None},
    ],
    "local-statuses": [
        {"code": "OCUP", "name": "Ocupado", "description": None},
        {"code": "DISP", "name": "Disponible", "description": None},
    ],
    "local-types": [
        {"code": "BATEA", "name": "Batea", "description": None},
        {"code": "KIOSKO", "name": "Kiosko", "description": None},
        {"code": "LOCAL", "name": "Local", "description": None},
        {"code": "OFICINA", "name": "Oficina", "description": None},
    ],
    "local-locations": [
        {"code": "PB", "name": "Planta baja"},
    ],
    "contract-modalities": [
        {"code": "TFIJA", "name": "Tasa Fija"},
        {"code": "M2", "name": "Metro Cuadrado"},
    ],
    "contract-statuses": [
        {"code": "VIG", "name": "Vigente"},
        {"code": "TERM", "name": "Terminado"},
        {"code": "VENC", "name": "Vencido"},
    ],
    "contract-types": [
        {"code": "CONTR", "name": "Contrato"},
        {"code": "CESION", "name": "Cesion"},
        {"code": "CONV", "name": "Convenio"},
    ],
    "markets": [
        {"code": "MERCACH", "name": "Sede Principal", "address": "Calle Urdaneta, Chacao, Caracas, Venezuela"},
    ],
}
