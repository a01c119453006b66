"""
JSON rendering of result objects for the calling layer.

The engine never persists anything itself; callers that keep an audit
copy (a UI storing the last trust score, for instance) serialize with
these helpers so enums and tuples come out in a stable shape.
"""

import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any


class ReportEncoder(json.JSONEncoder):
    """
    JSON Encoder for analyzer results.

    RULES:
    1. Enums MUST use their .value.
    2. Dataclasses are rendered field by field.
    3. Sets -> Lists (sorted for determinism).
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        if is_dataclass(obj) and not isinstance(obj, type):
            return to_plain(obj)
        return super().default(obj)


def to_plain(value: Any) -> Any:
    """Recursively convert a result object to JSON-compatible builtins."""
    if is_dataclass(value) and not isinstance(value, type):
        return {key: to_plain(item) for key, item in asdict(value).items()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(key): to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted(to_plain(item) for item in value)
    return value


def to_json(value: Any, **kwargs: Any) -> str:
    """Serialize a result object; keyword arguments go to ``json.dumps``."""
    kwargs.setdefault("ensure_ascii", False)
    return json.dumps(value, cls=ReportEncoder, **kwargs)
