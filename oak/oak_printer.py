"""
Formats Oak values the way the `string()` builtin renders them.
"""
import math

from oak.oak_datatypes import Atom, OakString, OakTypeError, Empty, is_number


class Printer:
    """Renders Oak values as display strings.

    Level 0 is the value handed to `string()`; strings print bare and atoms
    print without their colon. Nested values (level > 0) print the way they
    would be written in source: quoted strings, `:atoms`.
    """

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        # Fast path for singletons
        if obj is None: return self._pformat_null
        if obj is Empty: return self._pformat_empty

        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if is_number(obj): return self._pformat_number
        if isinstance(obj, list): return self._pformat_list
        if isinstance(obj, dict): return self._pformat_object
        if callable(obj): return self._pformat_function
        raise OakTypeError(f"string() called on unknown type {obj!r}")

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            OakString: self._pformat_str,
            int: self._pformat_number,
            float: self._pformat_number,
            bool: self._pformat_bool,
            Atom: self._pformat_atom,
            list: self._pformat_list,
            dict: self._pformat_object,
        }

    def _pformat_null(self, obj, level):
        return "?"

    def _pformat_empty(self, obj, level):
        return "_"

    def _pformat_number(self, obj, level):
        if isinstance(obj, int):
            return str(obj)
        if math.isnan(obj):
            return "NaN"
        if math.isinf(obj):
            return "Infinity" if obj > 0 else "-Infinity"
        # Integral floats print without a fraction; there is one number kind.
        if obj.is_integer() and abs(obj) < 1e21:
            return str(int(obj))
        return repr(obj)

    def _pformat_bool(self, obj, level):
        return 'true' if obj else 'false'

    def _pformat_str(self, obj, level):
        s = str(obj)
        if level == 0:
            return s
        escaped = s.replace('\\', '\\\\').replace("'", "\\'")
        return f"'{escaped}'"

    def _pformat_atom(self, obj, level):
        if level == 0:
            return obj.name
        return f":{obj.name}"

    def _pformat_function(self, obj, level):
        name = getattr(obj, "__name__", None) or type(obj).__name__
        return f"fn {name}"

    def _pformat_list(self, obj, level):
        return "[" + ", ".join(self.pformat(item, level + 1) for item in obj) + "]"

    def _pformat_object(self, obj, level):
        entries = [f"{key}: {self.pformat(obj[key], level + 1)}" for key in sorted(obj)]
        return "{" + ", ".join(entries) + "}"


def string(x) -> OakString:
    """The `string()` builtin: strings come back as-is, everything else renders."""
    if isinstance(x, OakString):
        return x
    if isinstance(x, str):
        return OakString(x)
    return OakString(Printer().pformat(x))
