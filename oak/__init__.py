from oak.oak_datatypes import (
    Atom, Empty, Kind, OakError, OakString, OakTypeError,
    UnimplementedOperationError, UnresolvedModuleError,
    as_string, classify, equals, is_string, keys_of, length, type_of,
)
from oak.oak_trampoline import Thunk, trampoline, resolve_trampoline
from oak.oak_modules import ModuleRegistry, ModuleState
from oak.oak_config import RuntimeConfig, load_config
from oak.oak_printer import Printer, string
from oak.oak_runtime import Runtime, ExecutionResult
