# oak_runtime.py

import asyncio
import math
import os
import random
import sys
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional

from oak.oak_config import RuntimeConfig, dbg
from oak.oak_datatypes import (
    Atom, OakString, OakTypeError, UnimplementedOperationError,
    call_adapted, char, codepoint, is_number, keys_of, length,
    make_atom, to_float, to_int, type_of,
)
from oak.oak_modules import ModuleRegistry, export_members
from oak.oak_printer import string


def _unimplemented(name: str) -> Callable:
    def stub(*args):
        raise UnimplementedOperationError(name)
    stub.__name__ = name
    return stub


# Host entry points this runtime deliberately does not provide.
UNIMPLEMENTED = (
    "exec", "input", "ls", "rm", "mkdir", "stat",
    "open", "close", "read", "write", "listen", "req",
)


# ===================================================================
# Builtins
# ===================================================================
class Builtins:
    """Python implementations of the Oak builtin functions.

    Every `_name` method is exposed to compiled code under its Oak name
    (see oak_modules.oak_name); `_contains_q` would be `contains?`.
    """
    def __init__(self, runtime: 'Runtime'):
        self.runtime = runtime

    # --- Reflection and types ---
    def _int(self, x): return to_int(x)
    def _float(self, x): return to_float(x)
    def _atom(self, x): return make_atom(x)
    def _string(self, x): return string(x)
    def _codepoint(self, c): return codepoint(c)
    def _char(self, n): return char(n)
    def _type(self, x): return type_of(x)
    def _len(self, x): return length(x)
    def _keys(self, x): return keys_of(x)
    def _import(self, name): return self.runtime.modules.import_module(str(name))

    # --- OS interfaces ---
    def _args(self):
        return [OakString(a) for a in self.runtime.config.argv]

    def _env(self):
        env = self.runtime.config.env
        if env is None:
            env = os.environ
        return {k: OakString(v) for k, v in env.items()}

    def _time(self): return time.time()
    def _nanotime(self): return time.time_ns()
    def _rand(self): return random.random()

    def _srand(self, n):
        return OakString(os.urandom(int(n)).decode("latin-1"))

    def _wait(self, duration, cb=None):
        """Schedules cb after duration seconds on the running event loop."""
        if not is_number(duration):
            raise OakTypeError(f"Mismatched types in call wait({string(duration)})")
        if cb is not None:
            self.runtime.schedule(duration, cb)
        return None

    def _exit(self, code):
        if not is_number(code):
            raise OakTypeError(f"Mismatched types in call exit({string(code)})")
        raise SystemExit(int(code))

    # --- I/O ---
    def _print(self, s):
        out = str(string(s))
        stream = self.runtime.config.stdout or sys.stdout
        stream.write(out)
        return len(out)

    # --- Math ---
    def _sin(self, n): return math.sin(n)
    def _cos(self, n): return math.cos(n)
    def _tan(self, n): return math.tan(n)
    def _asin(self, n): return math.asin(n)
    def _acos(self, n): return math.acos(n)
    def _atan(self, n): return math.atan(n)
    def _pow(self, b, n): return math.pow(b, n)
    def _log(self, b, n): return math.log(n) / math.log(b)

    # --- Host interop ---
    def _call(self, target, fn, *args):
        """Calls the host method named by atom `fn` on target."""
        name = fn.name if isinstance(fn, Atom) else str(fn)
        return getattr(target, name)(*args)

    def _try(self, fn):
        try:
            return {"type": Atom("ok"), "ok": fn()}
        except Exception as e:
            return {"type": Atom("error"), "error": e}

    def as_mapping(self) -> Dict[str, Any]:
        exports = export_members(self)
        for name in UNIMPLEMENTED:
            exports[name] = _unimplemented(name)
        return exports


# ===================================================================
# Runtime
# ===================================================================
@dataclass
class ExecutionResult:
    """The structured result of running a bundle's entry module."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_type: Optional[str] = None

    def format_error(self) -> str:
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        if self.error_type and not msg.startswith(f"{self.error_type}:"):
            return f"{self.error_type}: {msg}"
        return msg


class Runtime:
    """Owns a module registry, the builtins, and pending timers.

    The standard library modules (std, str, fmt, json) are registered as
    factories at construction, so they load lazily on first import.
    """

    def __init__(self, config: Optional[RuntimeConfig] = None, registry: Optional[ModuleRegistry] = None):
        self.config = config or RuntimeConfig()
        self.modules = registry or ModuleRegistry(debug=self.config.debug)
        for name, target in self.config.aliases.items():
            self.modules.alias(name, target)
        self.builtins = Builtins(self).as_mapping()
        self._timers: set = set()
        self._timer_errors: List[BaseException] = []

        if self.config.load_std:
            self._register_std()

    def _dbg(self, *parts):
        dbg(*parts, enabled=self.config.debug)

    def _register_std(self):
        from oak import oak_fmt, oak_json, oak_std, oak_str
        self.modules.register("std", lambda: oak_std.load(self))
        self.modules.register("str", lambda: oak_str.load(self))
        self.modules.register("fmt", lambda: oak_fmt.load(self))
        self.modules.register("json", lambda: oak_json.load(self))

    def import_module(self, name) -> Dict[str, Any]:
        return self.modules.import_module(name)

    # --- Timers ---
    def schedule(self, duration, cb):
        """Runs cb after duration seconds. Requires a running event loop."""
        loop = asyncio.get_running_loop()
        cb = call_adapted(cb)

        def fire():
            self._timers.discard(handle)
            try:
                cb()
            except Exception as e:
                self._dbg("timer error", type(e).__name__, e)
                self._timer_errors.append(e)

        handle = loop.call_later(max(float(duration), 0.0), fire)
        self._timers.add(handle)
        self._dbg("timer", "scheduled", duration)
        return handle

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    async def settle(self):
        """Waits until every scheduled timer has fired.

        Errors raised inside timer callbacks are re-raised here, first one
        wins.
        """
        loop = asyncio.get_running_loop()
        while self._timers:
            nearest = min(h.when() for h in self._timers)
            await asyncio.sleep(max(nearest - loop.time(), 0))
        if self._timer_errors:
            err = self._timer_errors[0]
            self._timer_errors.clear()
            raise err

    async def run(self, entry: Optional[str] = None) -> ExecutionResult:
        """Imports the entry module, waits for timers, and reports the outcome."""
        name = self.config.entry if entry is None else entry
        self._dbg("run", repr(name))
        try:
            value = self.modules.import_module(name)
            await self.settle()
        except Exception as e:
            return ExecutionResult('error', error_message=str(e), error_type=type(e).__name__)
        return ExecutionResult('success', value=value)
