"""
The `std` module: core collection, iteration and timing helpers.

Functions that walk a collection are written as index-walking helpers
driven through the trampoline, so they run at constant stack depth however
long the input is.
"""
from typing import Any, Dict

from oak.oak_datatypes import (
    Atom, Kind, OakString, access, and_, assign, call_adapted, classify,
    equals, keys_of, length, make_atom, or_, push, to_int,
)
from oak.oak_modules import export_members
from oak.oak_printer import string
from oak.oak_trampoline import resolve_trampoline, trampoline

_N_TO_H = "0123456789abcdef"
_H_TO_N = {c: int(c, 16) for c in "0123456789abcdefABCDEF"}


def _never():
    return None


class StdModule:
    def __init__(self, runtime):
        self.runtime = runtime

    # --- Helpers (not exported) ---
    def base_iterator(self, v):
        """An empty container of the same kind as v."""
        match classify(v):
            case Kind.STRING:
                return OakString("")
            case Kind.LIST:
                return []
            case Kind.OBJECT:
                return {}
            case _:
                return None

    def as_predicate(self, pred):
        """Atoms, strings and ints become property accessors."""
        match classify(pred):
            case Kind.ATOM:
                prop = pred.name
                return lambda x, *_: access(x, prop)
            case Kind.STRING | Kind.INT:
                return lambda x, *_: access(x, pred)
            case _:
                return call_adapted(pred)

    # --- Basics ---
    def _identity(self, x=None): return x

    def _default(self, x=None, base=None):
        return base if equals(x, None) else x

    def _to_hex(self, n):
        def sub(p, acc):
            if p < 16:
                return OakString(_N_TO_H[p] + acc)
            return trampoline(sub, to_int(p / 16), _N_TO_H[p % 16] + acc)
        return resolve_trampoline(sub, to_int(n), "")

    def _from_hex(self, s):
        s = str(s)

        def sub(i, acc):
            if i == len(s):
                return acc
            nxt = _H_TO_N.get(s[i])
            if nxt is None:
                return None
            return trampoline(sub, i + 1, acc * 16 + nxt)
        return resolve_trampoline(sub, 0, 0)

    def _clamp(self, min, max, n, m):
        n = min if n < min else n
        m = min if m < min else m
        m = max if m > max else m
        n = m if n > m else n
        return [n, m]

    # --- Slicing and copying ---
    def _slice(self, xs, min=None, max=None):
        """xs[min:max] with both bounds clamped into [0, len(xs)]."""
        min = self._default(min, 0)
        max = self._default(max, length(xs))
        min, max = self._clamp(0, length(xs), min, max)

        def sub(acc, i):
            if i == max:
                return acc
            return trampoline(sub, push(acc, access(xs, i)), i + 1)
        return resolve_trampoline(sub, self.base_iterator(xs), min)

    def _clone(self, x):
        match classify(x):
            case Kind.STRING:
                return OakString(str(x))
            case Kind.LIST:
                return self._slice(x)
            case Kind.OBJECT:
                return self._reduce(keys_of(x), {}, lambda acc, key: assign(acc, key, access(x, key)))
            case _:
                return x

    def _range(self, start, end=None, step=None):
        step = self._default(step, 1)
        if equals(end, None):
            start, end = 0, start
        if step == 0:
            return []
        out = []
        before_end = (lambda n: n < end) if step > 0 else (lambda n: n > end)

        def sub(n):
            if before_end(n):
                out.append(n)
                return trampoline(sub, n + step)
            return out
        return resolve_trampoline(sub, start)

    def _reverse(self, xs):
        def sub(acc, i):
            if i < 0:
                return acc
            return trampoline(sub, push(acc, access(xs, i)), i - 1)
        return resolve_trampoline(sub, self.base_iterator(xs), length(xs) - 1)

    # --- Iteration ---
    def _map(self, xs, f):
        f = self.as_predicate(f)

        def sub(acc, i):
            if i == length(xs):
                return acc
            return trampoline(sub, push(acc, f(access(xs, i), i)), i + 1)
        return resolve_trampoline(sub, self.base_iterator(xs), 0)

    def _each(self, xs, f):
        f = call_adapted(f)

        def sub(i):
            if i == length(xs):
                return None
            f(access(xs, i), i)
            return trampoline(sub, i + 1)
        return resolve_trampoline(sub, 0)

    def _filter(self, xs, f):
        f = self.as_predicate(f)

        def sub(acc, i):
            if i == length(xs):
                return acc
            x = access(xs, i)
            if equals(f(x, i), True):
                push(acc, x)
            return trampoline(sub, acc, i + 1)
        return resolve_trampoline(sub, self.base_iterator(xs), 0)

    def _reduce(self, xs, seed, f):
        """Left fold: f(acc, x, i) over xs in order, starting from seed."""
        f = call_adapted(f)

        def sub(acc, i):
            if i == length(xs):
                return acc
            return trampoline(sub, f(acc, access(xs, i), i), i + 1)
        return resolve_trampoline(sub, seed, 0)

    def _flatten(self, xs):
        return self._reduce(xs, [], self._append)

    def _compact(self, xs):
        return self._filter(xs, lambda x: not equals(x, None))

    def _some(self, xs, pred=None):
        pred = call_adapted(self._default(pred, self._identity))
        return self._reduce(xs, False, lambda acc, x, i: True if acc is True else or_(acc, pred(x, i)))

    def _every(self, xs, pred=None):
        pred = call_adapted(self._default(pred, self._identity))
        return self._reduce(xs, True, lambda acc, x, i: False if acc is False else and_(acc, pred(x, i)))

    def _append(self, xs, ys):
        """Pushes every element of ys onto xs in place."""
        return self._reduce(ys, xs, lambda zs, y: push(zs, y))

    def _join(self, xs, ys):
        return self._append(self._clone(xs), ys)

    def _zip(self, xs, ys, zipper=None):
        zipper = call_adapted(self._default(zipper, lambda x, y: [x, y]))
        max = length(xs) if length(xs) < length(ys) else length(ys)

        def sub(acc, i):
            if i == max:
                return acc
            return trampoline(sub, push(acc, zipper(access(xs, i), access(ys, i), i)), i + 1)
        return resolve_trampoline(sub, [], 0)

    def _partition(self, xs, by):
        """Groups xs into runs.

        An int `by` cuts every `by` elements; a function `by` starts a new
        group whenever its result differs from the previous element's.
        """
        match classify(by):
            case Kind.INT:
                def step(acc, x, i):
                    if i % by == 0:
                        return push(acc, [x])
                    push(acc[-1], x)
                    return acc
                return self._reduce(xs, [], step)
            case Kind.FUNCTION:
                by = call_adapted(by)
                last = _never

                def step(acc, x):
                    nonlocal last
                    this = by(x)
                    if equals(this, last):
                        push(acc[-1], x)
                    else:
                        push(acc, [x])
                    last = this
                    return acc
                return self._reduce(xs, [], step)
            case _:
                return None

    def _uniq(self, xs, pred=None):
        """Drops consecutive duplicates only: [1, 1, 2, 1] -> [1, 2, 1]."""
        pred = call_adapted(self._default(pred, self._identity))
        ys = self.base_iterator(xs)
        last = _never

        def sub(i):
            nonlocal last
            if i == length(xs):
                return ys
            x = access(xs, i)
            p = pred(x)
            if not equals(p, last):
                push(ys, x)
                last = p
            return trampoline(sub, i + 1)
        return resolve_trampoline(sub, 0)

    # --- Access ---
    def _first(self, xs): return access(xs, 0)
    def _last(self, xs): return access(xs, length(xs) - 1)
    def _take(self, xs, n): return self._slice(xs, 0, n)
    def _take_last(self, xs, n): return self._slice(xs, length(xs) - n)

    def _find(self, xs, pred):
        """Index of the first element satisfying pred, or -1."""
        pred = call_adapted(pred)

        def sub(i):
            if i == length(xs):
                return -1
            if equals(pred(access(xs, i)), True):
                return i
            return trampoline(sub, i + 1)
        return resolve_trampoline(sub, 0)

    def _index_of(self, xs, x):
        def sub(i):
            if i == length(xs):
                return -1
            if equals(access(xs, i), x):
                return i
            return trampoline(sub, i + 1)
        return resolve_trampoline(sub, 0)

    def _contains_q(self, xs, x):
        return self._index_of(xs, x) > -1

    # --- Objects ---
    def _values(self, obj):
        return self._map(keys_of(obj), lambda key: access(obj, key))

    def _entries(self, obj):
        return self._map(keys_of(obj), lambda key: [key, access(obj, key)])

    def _merge(self, *os):
        """Copies every key of os[1:] onto os[0], in place, left to right."""
        if len(os) == 0:
            return None

        def merge_one(acc, o):
            return self._reduce(keys_of(o), acc, lambda root, k: assign(root, k, access(o, k)))
        return self._reduce(list(os), os[0], merge_one)

    # --- Control ---
    def _once(self, f):
        f = call_adapted(f)
        called = False

        def once(*args):
            nonlocal called
            if not called:
                called = True
                return f(*args)
            return None
        return once

    def _loop(self, max=None, f=None):
        """Calls f(count, breaker) up to max times (forever when max is -1)."""
        if equals(f, None):
            max, f = -1, max
        max = self._default(max, -1)
        f = call_adapted(f)
        ret = None
        broken = False

        def breaker(x=None):
            nonlocal ret, broken
            ret = x
            broken = True

        def sub(count):
            if equals(count, max):
                return None
            if broken:
                return ret
            f(count, breaker)
            return trampoline(sub, count + 1)
        return resolve_trampoline(sub, 0)

    def _debounce(self, duration, first_call=None, f=None):
        """Rate-limits f to one call per `duration` seconds.

        With :leading the first call in a quiet window runs immediately and
        the rest of the window's calls are dropped. With :trailing (the
        default) the call runs once the window closes, with the arguments of
        the most recent call.
        """
        if equals(f, None):
            first_call, f = Atom("trailing"), first_call
        first_call = make_atom(first_call)
        f = call_adapted(f)
        rt = self.runtime
        now = rt.builtins["time"]
        wait = rt.builtins["wait"]
        state = {"args": (), "waiting": False, "target": now() - duration}

        def fire():
            state["waiting"] = False
            f(*state["args"])

        def debounced(*args):
            tcall = now()
            state["args"] = args
            if state["waiting"]:
                return None
            if state["target"] <= tcall:
                state["target"] = tcall + duration
                if first_call is Atom("leading"):
                    f(*state["args"])
                elif first_call is Atom("trailing"):
                    state["waiting"] = True
                    wait(state["target"] - now(), fire)
            elif first_call is Atom("trailing"):
                state["waiting"] = True
                timeout = state["target"] - tcall
                state["target"] = state["target"] + duration
                wait(timeout, fire)
            return None
        return debounced

    # --- I/O ---
    def _stdin(self):
        """Reads input() events until an :error event, joining lines."""
        read = self.runtime.builtins["input"]
        file = OakString("")

        def step(_, brk):
            evt = read()
            push(file, access(evt, "data"))
            if equals(access(evt, "type"), Atom("error")):
                brk(file)
            else:
                push(file, "\n")
        return self._loop(step)

    def _println(self, *xs):
        out = self.runtime.builtins["print"]
        if len(xs) == 0:
            return out("\n")
        line = self._reduce(list(xs[1:]), string(xs[0]), lambda acc, x: str(acc) + " " + str(string(x)))
        return out(str(line) + "\n")


def load(runtime) -> Dict[str, Any]:
    return export_members(StdModule(runtime))
