"""
The `str` module: character classes and literal (non-pattern) string
operations. Every string result is an OakString.
"""
from typing import Any, Dict

from oak.oak_datatypes import (
    OakString, access, as_string, char, codepoint, concat, equals, is_string,
    length, push, to_int,
)
from oak.oak_modules import export_members
from oak.oak_trampoline import resolve_trampoline, trampoline

_SPACE = (" ", "\t", "\n", "\r", "\f")


def _between(c, lo: str, hi: str) -> bool:
    return is_string(c) and lo <= str(c) <= hi


class StrModule:
    def __init__(self, runtime):
        self.runtime = runtime
        std = runtime.modules.import_module("std")
        self.default = std["default"]
        self.slice = std["slice"]
        self.take = std["take"]
        self.take_last = std["takeLast"]
        self.reduce = std["reduce"]

    # --- Character classes ---
    def _check_range(self, lo, hi):
        def checker(c):
            p = codepoint(c)
            return p is not None and lo <= p <= hi
        return checker

    def _upper_q(self, c): return _between(c, "A", "Z")
    def _lower_q(self, c): return _between(c, "a", "z")
    def _digit_q(self, c): return _between(c, "0", "9")
    def _space_q(self, c): return is_string(c) and str(c) in _SPACE
    def _letter_q(self, c): return self._upper_q(c) or self._lower_q(c)
    def _word_q(self, c): return self._letter_q(c) or self._digit_q(c)

    # --- Searching ---
    def _join(self, strings, joiner=None):
        joiner = self.default(joiner, "")
        if length(strings) == 0:
            return OakString("")
        return self.reduce(self.slice(strings, 1), as_string(access(strings, 0)),
                           lambda a, b: concat(a, joiner, b))

    def _starts_with_q(self, s, prefix):
        return equals(self.take(s, length(prefix)), prefix)

    def _ends_with_q(self, s, suffix):
        return equals(self.take_last(s, length(suffix)), suffix)

    def matches_at(self, s, substr, idx):
        """Whether substr occurs in s starting at idx."""
        n = length(substr)
        if n == 0:
            return True
        if n == 1:
            return equals(access(s, idx), substr)

        def sub(i):
            if i == n:
                return True
            if equals(access(s, idx + i), access(substr, i)):
                return trampoline(sub, i + 1)
            return False
        return resolve_trampoline(sub, 0)

    def _index_of(self, s, substr):
        """Index of the first occurrence of substr in s, or -1."""
        max = length(s) - length(substr)

        def sub(i):
            if self.matches_at(s, substr, i):
                return i
            if i < max:
                return trampoline(sub, i + 1)
            return -1
        return resolve_trampoline(sub, 0)

    def _contains_q(self, s, substr):
        return self._index_of(s, substr) >= 0

    def _cut(self, s, sep):
        """Splits s around the first sep: [before, after], or [s, ''] on a miss."""
        idx = self._index_of(s, sep)
        if idx == -1:
            return [as_string(s), OakString("")]
        return [self.slice(s, 0, idx), self.slice(s, idx + length(sep))]

    # --- Case ---
    def _lower(self, s):
        return self.reduce(s, OakString(""), lambda acc, c: push(
            acc, char(codepoint(c) + 32) if self._upper_q(c) else c))

    def _upper(self, s):
        return self.reduce(s, OakString(""), lambda acc, c: push(
            acc, char(codepoint(c) - 32) if self._lower_q(c) else c))

    # --- Rewriting ---
    def _replace(self, s, old, new):
        """Replaces every literal occurrence of old with new."""
        if equals(old, ""):
            return as_string(s)
        lold, lnew = length(old), length(new)

        def sub(acc, i):
            if self.matches_at(acc, old, i):
                return trampoline(sub, concat(self.slice(acc, 0, i), new, self.slice(acc, i + lold)), i + lnew)
            if i < length(acc):
                return trampoline(sub, acc, i + 1)
            return acc
        return resolve_trampoline(sub, as_string(s), 0)

    def _split(self, s, sep=None):
        """Splits on a literal separator; no separator splits into characters."""
        if equals(sep, None) or equals(sep, ""):
            return self.reduce(s, [], lambda acc, c: push(acc, c))
        coll = []
        lsep = length(sep)

        def sub(i, last):
            if self.matches_at(s, sep, i):
                coll.append(self.slice(s, last, i))
                return trampoline(sub, i + lsep, i + lsep)
            if i < length(s):
                return trampoline(sub, i + 1, last)
            coll.append(self.slice(s, last))
            return coll
        return resolve_trampoline(sub, 0, 0)

    def extend(self, pad, n):
        """pad repeated out to exactly n characters."""
        times = to_int(n / length(pad))
        part = n % length(pad)

        def sub(base, i):
            if i == 0:
                return push(base, self.slice(pad, 0, part))
            return trampoline(sub, push(base, pad), i - 1)
        return resolve_trampoline(sub, OakString(""), times)

    def _pad_start(self, s, n, pad):
        if length(s) >= n:
            return as_string(s)
        return push(self.extend(pad, n - length(s)), s)

    def _pad_end(self, s, n, pad):
        if length(s) >= n:
            return as_string(s)
        return concat(s, self.extend(pad, n - length(s)))

    # --- Trimming ---
    def _trim_start(self, s, prefix=None):
        """Strips leading prefix repeats, or leading whitespace when prefix is None."""
        if equals(prefix, ""):
            return as_string(s)
        if equals(prefix, None):
            def sub(i):
                if self._space_q(access(s, i)):
                    return trampoline(sub, i + 1)
                return i
            return self.slice(s, resolve_trampoline(sub, 0))

        max, lpref = length(s), length(prefix)

        def sub(i):
            if i < max and self.matches_at(s, prefix, i):
                return trampoline(sub, i + lpref)
            return i
        return self.slice(s, resolve_trampoline(sub, 0))

    def _trim_end(self, s, suffix=None):
        """Strips trailing suffix repeats, or trailing whitespace when suffix is None."""
        if equals(suffix, ""):
            return as_string(s)
        if equals(suffix, None):
            def sub(i):
                if self._space_q(access(s, i)):
                    return trampoline(sub, i - 1)
                return i
            return self.slice(s, 0, resolve_trampoline(sub, length(s) - 1) + 1)

        lsuf = length(suffix)

        def sub(i):
            if i > -1 and self.matches_at(s, suffix, i - lsuf):
                return trampoline(sub, i - lsuf)
            return i
        return self.slice(s, 0, resolve_trampoline(sub, length(s)))

    def _trim(self, s, part=None):
        return self._trim_end(self._trim_start(s, part), part)


def load(runtime) -> Dict[str, Any]:
    return export_members(StrModule(runtime))
