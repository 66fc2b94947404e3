"""JSON rendering of domain records.

Records are frozen dataclasses with snake_case fields; the API speaks
camelCase. The leading ``*_id`` field of a record is its primary key and is
rendered as ``_id`` so payloads keep the document-store shape clients expect.
"""

from __future__ import annotations

import dataclasses
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def camelize(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def snakeify(name: str) -> str:
    if name == "_id":
        return name
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_keys(data: Mapping[str, Any] | None) -> dict[str, Any]:
    return {snakeify(str(k)): v for k, v in (data or {}).items()}


def to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = dataclasses.fields(value)
        out: dict[str, Any] = {}
        for i, f in enumerate(fields):
            key = "_id" if i == 0 and f.name.endswith("_id") else camelize(f.name)
            out[key] = to_json(getattr(value, f.name))
        return out
    if isinstance(value, Mapping):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json(v) for v in value]
    return value
