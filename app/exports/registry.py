from app.core.exceptions import DomainActionError
from app.exports.base import Exporter
from app.exports.csv_exporter import CsvExporter
from app.exports.json_exporter import JsonExporter
from app.exports.xlsx_exporter import XlsxExporter

EXPORTERS: dict[str, Exporter] = {
    "csv": CsvExporter(),
    "xlsx": XlsxExporter(),
    "json": JsonExporter(),
}


def resolve_exporter(format: str) -> Exporter:
    exporter = EXPORTERS.get(str(format or "").strip().lower())
    if exporter is None:
        raise DomainActionError(f"Formato de exportación no soportado: {format}")
    return exporter
