from __future__ import annotations

import json
import math
from typing import Any, Dict

from oak.oak_datatypes import Atom, Empty, OakString, is_number, is_string
from oak.oak_modules import export_members


def _to_builtin(obj: Any) -> Any:
    # Oak values -> JSON-ready Python values
    if obj is None or obj is Empty:
        return None
    if isinstance(obj, bool):
        return obj
    if is_number(obj):
        if isinstance(obj, float) and not math.isfinite(obj):
            return None
        if isinstance(obj, float) and obj.is_integer():
            return int(obj)
        return obj
    if is_string(obj):
        return str(obj)
    if isinstance(obj, Atom):
        return obj.name
    if isinstance(obj, list):
        return [_to_builtin(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): _to_builtin(v) for k, v in obj.items()}
    # functions have no JSON form
    return None


def _from_builtin(obj: Any) -> Any:
    if isinstance(obj, str):
        return OakString(obj)
    if isinstance(obj, list):
        return [_from_builtin(x) for x in obj]
    if isinstance(obj, dict):
        return {k: _from_builtin(v) for k, v in obj.items()}
    return obj


class JsonModule:
    def __init__(self, runtime):
        self.runtime = runtime

    def _serialize(self, value) -> OakString:
        """Compact JSON with sorted keys, so equal values serialize equally."""
        return OakString(json.dumps(_to_builtin(value), ensure_ascii=False,
                                    separators=(",", ":"), sort_keys=True))

    def _parse(self, text):
        """Parses JSON text; malformed input yields the atom :error."""
        try:
            return _from_builtin(json.loads(str(text)))
        except json.JSONDecodeError:
            return Atom("error")


def load(runtime) -> Dict[str, Any]:
    return export_members(JsonModule(runtime))
