"""
Lazy module registry.

Compiled Oak bundles register one factory per module. A module is built the
first time something imports it, and at most once: the exports mapping the
factory returns is cached and handed to every later importer.

Circular imports resolve to a partial view. Before a factory runs, an empty
placeholder mapping is cached under its name, so a module that is imported
again while it is still loading sees that placeholder rather than recursing.
The placeholder is replaced, not filled in, once the factory returns; a
value captured from it during the cycle stays empty.
"""
import collections.abc
import enum
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from oak.oak_config import dbg
from oak.oak_datatypes import UnresolvedModuleError

Factory = Callable[[], Dict[str, Any]]


class ModuleState(enum.Enum):
    UNREGISTERED = "unregistered"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


@dataclass
class ModuleRecord:
    name: str
    factory: Optional[Factory] = None
    exports: Optional[Dict[str, Any]] = None
    state: ModuleState = ModuleState.UNREGISTERED


class ModuleRegistry:
    """Owns the module cache for one runtime.

    Populate it with register() at startup; after that only import_module()
    mutates it, and only on the first resolution of each name.
    """

    def __init__(self, aliases: Optional[Dict[str, str]] = None, debug: bool = False):
        self._records: Dict[str, ModuleRecord] = {}
        self.aliases: Dict[str, str] = dict(aliases or {})
        self.debug = debug

    def _dbg(self, *parts):
        dbg(*parts, enabled=self.debug)

    def register(self, name, factory: Union[Factory, collections.abc.Mapping]):
        """Registers a factory (or a prebuilt exports mapping) under name.

        Registering a name again replaces the earlier registration.
        """
        name = str(name)
        if isinstance(factory, collections.abc.Mapping):
            record = ModuleRecord(name, None, dict(factory), ModuleState.RESOLVED)
        elif callable(factory):
            record = ModuleRecord(name, factory)
        else:
            raise TypeError(f"module {name!r} must be registered with a factory or a mapping")
        self._records[name] = record
        self._dbg("register", repr(name), record.state.value)

    def alias(self, name, target):
        self.aliases[str(name)] = str(target)

    def __contains__(self, name) -> bool:
        return str(name) in self._records

    def names(self) -> List[str]:
        return list(self._records)

    def state_of(self, name) -> ModuleState:
        record = self._records.get(str(name))
        return record.state if record else ModuleState.UNREGISTERED

    def _alias_target(self, name: str) -> Optional[str]:
        """Follows alias links from name to the first registered module."""
        seen = {name}
        target = self.aliases.get(name)
        while target is not None and target not in self._records and target not in seen:
            seen.add(target)
            target = self.aliases.get(target)
        return target if target in self._records else None

    def import_module(self, name) -> Dict[str, Any]:
        """Returns name's exports, running its factory on first import.

        A name with no registration of its own resolves through its alias:
        the alias shares the target's exports, and the target loads once.
        """
        name = str(name)
        record = self._records.get(name)
        if record is not None and record.exports is not None:
            return record.exports

        if record is None:
            target = self._alias_target(name)
            if target is None:
                raise UnresolvedModuleError(name)
            self._dbg("alias", repr(name), "->", repr(target))
            return self.import_module(target)

        factory = record.factory
        previous = record
        record = ModuleRecord(name, factory, {}, ModuleState.RESOLVING)
        self._records[name] = record
        self._dbg("resolve", repr(name))
        try:
            exports = factory()
            if inspect.isawaitable(exports):
                if inspect.iscoroutine(exports):
                    exports.close()
                raise TypeError(f"module {name!r} factory must return exports synchronously")
            if not isinstance(exports, collections.abc.Mapping):
                raise TypeError(f"module {name!r} factory returned {type(exports).__name__}, expected a mapping")
        except BaseException:
            # Do not leave the placeholder cached for a module that never loaded.
            self._records[name] = previous
            raise

        record.exports = dict(exports)
        record.state = ModuleState.RESOLVED
        self._dbg("resolved", repr(name), "exports", len(record.exports))
        return record.exports


def oak_name(py_name: str) -> str:
    """Maps a `_method_name` to its exported Oak name.

    `_take_last` -> `takeLast`, `_contains_q` -> `contains?`.
    """
    name = py_name[1:] if py_name.startswith("_") else py_name
    suffix = ""
    if name.endswith("_q"):
        name, suffix = name[:-2], "?"
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest) + suffix


def export_members(obj) -> Dict[str, Any]:
    """Collects obj's single-underscore methods as an Oak exports mapping."""
    exports: Dict[str, Any] = {}
    for name, member in inspect.getmembers(obj):
        if name.startswith('_') and not name.startswith('__') and callable(member):
            exports[oak_name(name)] = member
    return exports
