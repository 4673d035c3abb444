"""
Tail-call trampoline.

Oak's standard library is written as self-recursive helpers that walk an
index and accumulate. Python does not eliminate tail calls, so each
recursive step returns a Thunk instead of calling itself, and
resolve_trampoline drives the chain in a loop at constant stack depth.

    def sub(acc, i):
        if i == len(xs):
            return acc
        return trampoline(sub, acc + xs[i], i + 1)

    total = resolve_trampoline(sub, 0, 0)
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Tuple


@dataclass(frozen=True)
class Thunk:
    """A deferred call: `fn(*args)`, consumed only by resolve_trampoline."""
    fn: Callable
    args: Tuple[Any, ...] = field(default_factory=tuple)


def trampoline(fn: Callable, *args: Any) -> Thunk:
    return Thunk(fn, args)


def resolve_trampoline(fn: Callable, *args: Any) -> Any:
    rv = fn(*args)
    while isinstance(rv, Thunk):
        rv = rv.fn(*rv.args)
    return rv


def is_thunk(x: Any) -> bool:
    return isinstance(x, Thunk)
