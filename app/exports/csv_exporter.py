import csv
import io
from typing import Any, Iterable, Iterator

from app.exports.base import Exporter, project


class CsvExporter(Exporter):
    format = "csv"
    extension = "csv"
    media_type = "text/csv; charset=utf-8"

    def _line(self, values: list[Any]) -> str:
        buffer = io.StringIO()
        csv.writer(buffer, lineterminator="\n").writerow(values)
        return buffer.getvalue()

    def iter_chunks(self, rows: Iterable[Any], columns: list[tuple[str, str]]) -> Iterator[str]:
        yield self._line([label for _, label in columns])
        for row in rows:
            yield self._line(project(row, columns))
