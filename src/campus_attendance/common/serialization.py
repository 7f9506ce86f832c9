from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def to_json(value: Any) -> Any:
    """Dataclasses/enums/dates -> JSON-friendly structures with camelCase keys."""
    if is_dataclass(value) and not isinstance(value, type):
        return {_camel(k): to_json(v) for k, v in asdict(value).items()}
    if isinstance(value, dict):
        return {(_camel(k) if isinstance(k, str) else k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(to_json(v) for v in value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value
