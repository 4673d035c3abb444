"""
Defines the core value model for the Oak runtime.

Every value a compiled Oak program handles is one of a closed set of kinds:
Empty, null (None), booleans, numbers, interned atoms, mutable strings,
lists, objects (dicts) and functions. This module provides the kind
discriminant, structural equality, and the small set of language primitives
(access, push, assign, bitwise operators) that compiled code leans on.
"""

import enum
import inspect
import math
import re
from typing import Any, Callable, Dict, List, Optional, Tuple


# =================================================================
# Errors
# =================================================================

class OakError(Exception):
    """Base class for errors raised by the Oak runtime."""
    pass


class OakTypeError(OakError, TypeError):
    """An operation was applied to a value of the wrong kind."""
    pass


class UnresolvedModuleError(OakError, ImportError):
    def __init__(self, module: str):
        super().__init__(f"Could not import Oak module \"{module}\" at runtime")
        self.module = module


class UnimplementedOperationError(OakError, NotImplementedError):
    def __init__(self, operation: str):
        super().__init__(f"{operation}() not implemented")
        self.operation = operation


# =================================================================
# Singletons and interned values
# =================================================================

class _EmptyType:
    """The `_` placeholder. Equal to every value under `equals`."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "_"

    def __reduce__(self):
        return (_EmptyType, ())


Empty = _EmptyType()


class Atom:
    """An interned symbolic constant, `:name` in Oak source.

    Atoms are created through the constructor, which returns the existing
    instance for a name when there is one, so `Atom("x") is Atom("x")`.
    """
    __slots__ = ("name", "__weakref__")
    _table: Dict[str, "Atom"] = {}

    def __new__(cls, name: str):
        name = str(name)
        existing = cls._table.get(name)
        if existing is not None:
            return existing
        atom = super().__new__(cls)
        atom.name = name
        cls._table[name] = atom
        return atom

    def __repr__(self):
        return f":{self.name}"

    def __reduce__(self):
        return (Atom, (self.name,))


class OakString:
    """A mutable, shared string box.

    Oak strings support positional writes and in-place appends, which the
    host `str` cannot. Every holder of an OakString observes mutations, but
    equality and hashing depend only on the current content, and compare
    equal to plain `str` with the same characters.
    """
    __slots__ = ("_s",)

    def __init__(self, s: str = ""):
        self._s = str(s)

    def assign(self, index: int, piece) -> "OakString":
        piece = _plain(piece)
        s = self._s
        if index == len(s):
            self._s = s + piece
        else:
            self._s = s[:index] + piece + s[index + len(piece):]
        return self

    def push(self, piece) -> "OakString":
        self._s += _plain(piece)
        return self

    @property
    def value(self) -> str:
        return self._s

    def __len__(self) -> int:
        return len(self._s)

    def __str__(self) -> str:
        return self._s

    def __repr__(self) -> str:
        return f"OakString({self._s!r})"

    def __eq__(self, other):
        if isinstance(other, OakString):
            return self._s == other._s
        if isinstance(other, str):
            return self._s == other
        return NotImplemented

    def __ne__(self, other):
        res = self.__eq__(other)
        if res is NotImplemented:
            return res
        return not res

    # Hash tracks content; rehash after mutating a string used as a key.
    def __hash__(self):
        return hash(self._s)


def is_string(x: Any) -> bool:
    return isinstance(x, (str, OakString))


def as_string(x: Any) -> Any:
    """Box host strings; every other value passes through untouched."""
    if isinstance(x, str):
        return OakString(x)
    return x


def _plain(x: Any) -> str:
    if isinstance(x, OakString):
        return x.value
    if isinstance(x, str):
        return x
    from oak.oak_printer import Printer
    return Printer().pformat(x)


# =================================================================
# Kinds
# =================================================================

class Kind(enum.Enum):
    NULL = "null"
    EMPTY = "empty"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    ATOM = "atom"
    STRING = "string"
    LIST = "list"
    OBJECT = "object"
    FUNCTION = "function"


def is_number(x: Any) -> bool:
    # bool is a subclass of int, so rule it out first
    return isinstance(x, (int, float)) and not isinstance(x, bool)


def classify(x: Any) -> Kind:
    """Returns the Kind of a value. Raises OakTypeError for foreign values."""
    if x is None:
        return Kind.NULL
    if x is Empty:
        return Kind.EMPTY
    if isinstance(x, bool):
        return Kind.BOOL
    if is_number(x):
        # One numeric kind on the host; integral values report as :int.
        if isinstance(x, int) or (math.isfinite(x) and x.is_integer()):
            return Kind.INT
        return Kind.FLOAT
    if isinstance(x, Atom):
        return Kind.ATOM
    if is_string(x):
        return Kind.STRING
    if isinstance(x, list):
        return Kind.LIST
    if isinstance(x, dict):
        return Kind.OBJECT
    if callable(x):
        return Kind.FUNCTION
    raise OakTypeError(f"type() called on unknown type {x!r}")


def type_of(x: Any) -> Atom:
    return Atom(classify(x).value)


def length(x: Any) -> int:
    match classify(x):
        case Kind.STRING | Kind.LIST | Kind.OBJECT:
            return len(x)
        case _:
            raise OakTypeError(f"len() takes a string or composite value, but got {_plain(x)}")


def keys_of(x: Any) -> List[Any]:
    match classify(x):
        case Kind.LIST | Kind.STRING:
            return list(range(len(x)))
        case Kind.OBJECT:
            return [OakString(k) for k in x]
        case _:
            raise OakTypeError(f"keys() takes a composite value, but got {_plain(x)}")


# =================================================================
# Equality
# =================================================================

def _is_cheap(x: Any) -> bool:
    # Kinds compared without recursion or string coercion.
    return isinstance(x, bool) or is_number(x) or isinstance(x, Atom) or callable(x)


def equals(a: Any, b: Any) -> bool:
    """Oak's `=`: Empty matches anything, composites compare structurally."""
    if a is Empty or b is Empty:
        return True

    if a is None and b is None:
        return True
    if a is None or b is None:
        return False

    if _is_cheap(a) or _is_cheap(b):
        if isinstance(a, bool) or isinstance(b, bool):
            return isinstance(a, bool) and isinstance(b, bool) and a == b
        if is_number(a) and is_number(b):
            return a == b
        return a is b

    if is_string(a) or is_string(b):
        if not (is_string(a) and is_string(b)):
            return False
        return str(a) == str(b)

    ka, kb = classify(a), classify(b)
    if ka is not kb:
        return False
    if length(a) != length(b):
        return False
    for key in keys_of(a):
        if not equals(access(a, key), access(b, key)):
            return False
    return True


# =================================================================
# Language primitives
# =================================================================

def object_key(key: Any) -> Any:
    """Normalizes a property key: atoms by name, numbers as integral text."""
    if isinstance(key, Atom):
        return key.name
    if isinstance(key, OakString):
        return key.value
    if is_number(key):
        if isinstance(key, float) and key.is_integer():
            return str(int(key))
        return str(key)
    return key


def _as_index(key: Any) -> Optional[int]:
    if is_number(key) and float(key).is_integer():
        return int(key)
    return None


def access(target: Any, key: Any) -> Any:
    """`target.key` / `target.(key)`. Misses yield None rather than raising."""
    if is_string(target):
        idx = _as_index(key)
        s = str(target)
        if idx is None or idx < 0 or idx >= len(s):
            return None
        return OakString(s[idx])
    if isinstance(target, list):
        idx = _as_index(key)
        if idx is None or idx < 0 or idx >= len(target):
            return None
        return target[idx]
    if isinstance(target, dict):
        return target.get(object_key(key))
    return None


def push(target: Any, value: Any) -> Any:
    """`target << value`: append in place and return the (boxed) target."""
    target = as_string(target)
    if isinstance(target, OakString):
        target.push(value)
        return target
    if isinstance(target, list):
        target.append(value)
        return target
    raise OakTypeError(f"cannot push onto {_plain(target)}")


def assign(target: Any, key: Any, value: Any) -> Any:
    """`target.key := value`. Assigning Empty deletes an object key."""
    target = as_string(target)
    if isinstance(target, OakString):
        return target.assign(int(key), value)
    if isinstance(target, dict):
        k = object_key(key)
        if value is Empty:
            target.pop(k, None)
        else:
            target[k] = value
        return target
    if isinstance(target, list):
        idx = _as_index(key)
        if idx is None or idx < 0:
            raise OakTypeError(f"invalid list index {_plain(key)}")
        if idx == len(target):
            target.append(value)
        else:
            target[idx] = value
        return target
    raise OakTypeError(f"cannot assign to a property of {_plain(target)}")


def concat(*parts: Any) -> OakString:
    """String `+`: materializes every part and returns a fresh box."""
    return OakString("".join(_plain(p) for p in parts))


def _bits(x: Any, a: Any, b: Any) -> int:
    # null and booleans count as integers, as on the host.
    if x is None:
        return 0
    if isinstance(x, bool) or is_number(x):
        return int(x)
    raise OakTypeError(f"Mismatched operands {_plain(a)} and {_plain(b)} in bitwise operation")


def _bitwise(a, b, logical, numeric):
    if isinstance(a, bool) and isinstance(b, bool):
        return logical(a, b)
    if is_string(a) and is_string(b):
        sa, sb = str(a), str(b)
        width = max(len(sa), len(sb))
        get = lambda s, i: ord(s[i]) if i < len(s) else 0
        return OakString("".join(chr(numeric(get(sa, i), get(sb, i))) for i in range(width)))
    return numeric(_bits(a, a, b), _bits(b, a, b))


def and_(a, b):
    return _bitwise(a, b, lambda x, y: x and y, lambda x, y: x & y)


def or_(a, b):
    return _bitwise(a, b, lambda x, y: x or y, lambda x, y: x | y)


def xor(a, b):
    return _bitwise(a, b, lambda x, y: x != y, lambda x, y: x ^ y)


# =================================================================
# Conversions
# =================================================================

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def to_int(x: Any) -> Any:
    x = as_string(x)
    if is_number(x):
        if isinstance(x, int):
            return x
        if not math.isfinite(x):
            return None
        rounded = math.floor(x)
        if x < 0 and x - rounded == 0.5:
            return rounded + 1
        return rounded
    if isinstance(x, OakString) and _INT_RE.match(x.value):
        return int(x.value)
    return None


def to_float(x: Any) -> Any:
    x = as_string(x)
    if is_number(x):
        return float(x)
    if isinstance(x, OakString) and _FLOAT_RE.match(x.value):
        return float(x.value)
    return None


def make_atom(x: Any) -> Atom:
    x = as_string(x)
    if isinstance(x, Atom):
        return x
    if isinstance(x, OakString):
        return Atom(x.value)
    return Atom(_plain(x))


def codepoint(c: Any) -> Any:
    s = str(c) if is_string(c) else ""
    if not s:
        return None
    return ord(s[0])


def char(n: Any) -> OakString:
    return OakString(chr(int(n)))


# =================================================================
# Calling convention
# =================================================================

def _positional_arity(fn: Callable) -> Optional[Tuple[int, int]]:
    """(required, total) positional parameters, or None for variadic fns."""
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    required = total = 0
    for param in sig.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY,
                          inspect.Parameter.POSITIONAL_OR_KEYWORD):
            total += 1
            if param.default is inspect.Parameter.empty:
                required += 1
    return required, total


def call_adapted(fn: Callable) -> Callable:
    """Wraps fn to follow Oak's calling convention.

    Oak functions may be called with more arguments than they declare (map
    passes the element and its index), and missing arguments are null.
    Surplus positional arguments are dropped; missing required ones are
    filled with None.
    """
    if not callable(fn):
        raise OakTypeError(f"{_plain(fn)} is not a function")
    arity = _positional_arity(fn)
    if arity is None:
        return fn
    required, total = arity

    def adapted(*args):
        if len(args) > total:
            args = args[:total]
        elif len(args) < required:
            args = args + (None,) * (required - len(args))
        return fn(*args)

    adapted.__wrapped__ = fn
    return adapted
