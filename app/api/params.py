from __future__ import annotations

import re
from typing import Any, Iterable

from fastapi import HTTPException, Request

from app.schemas.queries import ListQuery, ShowQuery

_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_PART_RE = re.compile(r"\[([^\[\]]*)\]")


def _assign(target: dict[str, Any], path: list[str], value: str) -> None:
    node = target
    for i, part in enumerate(path):
        last = i == len(path) - 1
        if part == "":
            # "key[]" appends to a list; only valid as the final segment
            return
        nxt = path[i + 1] if not last else None
        if last:
            node[part] = value
            return
        if nxt == "":
            bucket = node.get(part)
            if not isinstance(bucket, list):
                bucket = [] if bucket is None else [bucket]
                node[part] = bucket
            bucket.append(value)
            return
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child


def parse_nested_params(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Fold bracketed query keys (``filters[a][from]=1``, ``ids[]=2``) into nested values.

    Repeated plain keys become lists.
    """
    out: dict[str, Any] = {}
    for raw_key, value in items:
        match = _KEY_RE.match(raw_key)
        if not match:
            continue
        head, tail = match.group(1), match.group(2)
        path = [head] + _PART_RE.findall(tail or "")
        if len(path) == 1 and head in out:
            current = out[head]
            out[head] = (current if isinstance(current, list) else [current]) + [value]
            continue
        _assign(out, path, value)
    return out


def request_params(request: Request) -> dict[str, Any]:
    return parse_nested_params(request.query_params.multi_items())


def list_query_from_request(request: Request) -> ListQuery:
    return ListQuery.from_params(request_params(request))


def _whitelisted(kind: str, requested: list[str], allowed: Iterable[str]) -> None:
    allowed_set = set(allowed)
    bad = [name for name in requested if name not in allowed_set]
    if bad:
        raise HTTPException(status_code=422, detail=f"{kind} no permitido: {', '.join(bad)}")


def show_query_from_request(
    request: Request,
    allowed_with: Iterable[str] = (),
    allowed_counts: Iterable[str] = (),
    allowed_appends: Iterable[str] = (),
) -> ShowQuery:
    query = ShowQuery.from_params(request_params(request))
    _whitelisted("with", query.with_, allowed_with)
    _whitelisted("withCount", query.with_count, allowed_counts)
    _whitelisted("append", query.append, allowed_appends)
    return query


def int_list(raw: Any) -> list[int]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raw = str(raw).split(",")
    out: list[int] = []
    for item in raw:
        text = str(item).strip()
        if not text:
            continue
        try:
            out.append(int(text))
        except ValueError:
            raise HTTPException(status_code=422, detail=f"Identificador inválido: {text}")
    return out
