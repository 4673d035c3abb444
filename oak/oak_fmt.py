"""
The `fmt` module: `{{ key }}` string templates.

    format('Hello {{ name }}, you are {{0}}', {name: 'Ann'}, 30)
    => 'Hello Ann, you are 30'

When the first value is an object it is the source for named keys, and
numeric keys index the values that follow it; otherwise numeric keys index
the values from the start. Keys that resolve to nothing render empty.
"""
import enum
from typing import Any, Dict

from oak.oak_datatypes import OakString, access, classify, Kind, push, to_int
from oak.oak_modules import export_members
from oak.oak_printer import string


class _State(enum.Enum):
    LITERAL = 0
    OPEN_BRACE = 1
    KEY = 2
    CLOSE_BRACE = 3


class FmtModule:
    def __init__(self, runtime):
        self.runtime = runtime
        std = runtime.modules.import_module("std")
        self.println = std["println"]

    def lookup(self, key: str, values):
        if key == "":
            return None
        source = values[0] if values else None
        positional = values
        if classify(source) is Kind.OBJECT:
            positional = values[1:]
        else:
            source = {}
        index = to_int(key)
        if index is None:
            return access(source, key)
        return access(list(positional), index)

    def _format(self, raw, *values):
        raw = str(raw)
        buf = OakString("")
        key = ""
        state = _State.LITERAL
        for c in raw:
            match state:
                case _State.LITERAL:
                    if c == "{":
                        state = _State.OPEN_BRACE
                    else:
                        buf.push(c)
                case _State.OPEN_BRACE:
                    if c == "{":
                        state = _State.KEY
                    else:
                        buf.push("{" + c)
                        state = _State.LITERAL
                case _State.KEY:
                    if c == "}":
                        value = self.lookup(key, values)
                        if value is not None:
                            push(buf, string(value))
                        key = ""
                        state = _State.CLOSE_BRACE
                    elif c not in (" ", "\t"):
                        key += c
                case _State.CLOSE_BRACE:
                    if c == "}":
                        state = _State.LITERAL
        if state is _State.OPEN_BRACE:
            buf.push("{")
        return buf

    def _printf(self, raw, *values):
        return self.println(self._format(raw, *values))


def load(runtime) -> Dict[str, Any]:
    return export_members(FmtModule(runtime))
