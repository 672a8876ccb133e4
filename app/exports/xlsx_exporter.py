from typing import Any, Iterable, Iterator

from app.exports.csv_exporter import CsvExporter

UTF8_BOM = "\ufeff"


class XlsxExporter(CsvExporter):
    """Excel-friendly CSV: a UTF-8 BOM keeps accented labels readable."""

    format = "xlsx"
    extension = "csv"

    def iter_chunks(self, rows: Iterable[Any], columns: list[tuple[str, str]]) -> Iterator[str]:
        yield UTF8_BOM
        yield from super().iter_chunks(rows, columns)
