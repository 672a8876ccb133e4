import json
from typing import Any, Iterable, Iterator

from app.exports.base import Exporter, project


class JsonExporter(Exporter):
    format = "json"
    extension = "json"
    media_type = "application/json"

    def iter_chunks(self, rows: Iterable[Any], columns: list[tuple[str, str]]) -> Iterator[str]:
        labels = [label for _, label in columns]
        yield "["
        first = True
        for row in rows:
            item = dict(zip(labels, project(row, columns)))
            yield ("" if first else ",") + json.dumps(item, ensure_ascii=False, default=str)
            first = False
        yield "]"
