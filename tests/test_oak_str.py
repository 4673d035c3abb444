import pytest

from oak.oak_datatypes import OakString
from oak.oak_runtime import Runtime


@pytest.fixture
def str_():
    return Runtime().import_module("str")


# --- Character classes ---

@pytest.mark.parametrize(
    "name,char,expected",
    [
        ("upper?", "A", True),
        ("upper?", "a", False),
        ("lower?", "z", True),
        ("digit?", "5", True),
        ("digit?", "x", False),
        ("space?", " ", True),
        ("space?", "\t", True),
        ("space?", "\n", True),
        ("space?", "\r", True),
        ("space?", "\f", True),
        ("space?", "\v", False),
        ("letter?", "q", True),
        ("letter?", "é", False),
        ("word?", "7", True),
        ("word?", "_", False),
        ("upper?", None, False),
    ],
)
def test_char_classes(str_, name, char, expected):
    assert str_[name](char) is expected


def test_check_range(str_):
    is_digit = str_["checkRange"](48, 57)
    assert is_digit("5") is True
    assert is_digit("a") is False
    assert is_digit("") is False


# --- Searching ---

def test_join(str_):
    assert str_["join"](["a", "b", "c"], "-") == "a-b-c"
    assert str_["join"](["a", "b"]) == "ab"
    assert str_["join"](["x"], ", ") == "x"
    assert str_["join"]([]) == ""


def test_starts_and_ends_with(str_):
    assert str_["startsWith?"]("hello", "he") is True
    assert str_["startsWith?"]("hello", "lo") is False
    assert str_["endsWith?"]("hello", "lo") is True
    assert str_["endsWith?"]("lo", "hello") is False


def test_index_of_and_contains(str_):
    assert str_["indexOf"]("hello", "ll") == 2
    assert str_["indexOf"]("hello", "h") == 0
    assert str_["indexOf"]("hello", "z") == -1
    assert str_["indexOf"]("", "a") == -1
    assert str_["contains?"]("hello", "ell") is True
    assert str_["contains?"]("hello", "elk") is False


def test_cut(str_):
    assert str_["cut"]("key=value=x", "=") == ["key", "value=x"]
    assert str_["cut"]("abc", "=") == ["abc", ""]
    assert str_["cut"]("a::b", "::") == ["a", "b"]


# --- Case ---

def test_case_conversion(str_):
    assert str_["upper"]("Hello, World 1") == "HELLO, WORLD 1"
    assert str_["lower"]("Hello, World 1") == "hello, world 1"
    assert isinstance(str_["upper"]("x"), OakString)


# --- Rewriting ---

@pytest.mark.parametrize(
    "s,old,new,expected",
    [
        ("a.b.c", ".", "-", "a-b-c"),
        ("aaa", "a", "aa", "aaaaaa"),
        ("hello", "l", "", "heo"),
        ("abc", "", "x", "abc"),
        ("one two", "two", "three", "one three"),
        ("nothing", "z", "y", "nothing"),
    ],
)
def test_replace(str_, s, old, new, expected):
    assert str_["replace"](s, old, new) == expected


@pytest.mark.parametrize(
    "s,sep,expected",
    [
        ("a,b,,c", ",", ["a", "b", "", "c"]),
        ("a--b", "--", ["a", "b"]),
        ("abc", None, ["a", "b", "c"]),
        ("abc", "", ["a", "b", "c"]),
        ("", ",", [""]),
        ("no-sep", ",", ["no-sep"]),
        (",x,", ",", ["", "x", ""]),
    ],
)
def test_split(str_, s, sep, expected):
    assert str_["split"](s, sep) == expected


@pytest.mark.parametrize("s", ["a/b/c", "/leading", "trailing/", "plain", ""])
def test_split_then_join_restores_input(str_, s):
    assert str_["join"](str_["split"](s, "/"), "/") == s


# --- Padding ---

def test_padding(str_):
    assert str_["padStart"]("5", 3, "0") == "005"
    assert str_["padEnd"]("ab", 5, "xy") == "abxyx"
    assert str_["padStart"]("abc", 2, "0") == "abc"
    assert str_["padEnd"]("abc", 3, "-") == "abc"


# --- Trimming ---

def test_trim_whitespace(str_):
    assert str_["trim"]("  hi \n") == "hi"
    assert str_["trimStart"]("\t x ") == "x "
    assert str_["trimEnd"](" x \r\n") == " x"
    assert str_["trimEnd"]("   ") == ""


def test_trim_literal_parts(str_):
    assert str_["trimStart"]("xxhixx", "x") == "hixx"
    assert str_["trimEnd"]("xxhixx", "x") == "xxhi"
    assert str_["trimEnd"]("xx", "x") == ""
    assert str_["trim"]("abcabc hi abc", "abc") == " hi "
    assert str_["trimStart"]("..a", ".") == "a"
    assert str_["trimStart"]("hello", "") == "hello"


# --- Stack safety ---

def test_long_strings_do_not_overflow(str_):
    s = "a," * 5_000
    parts = str_["split"](s, ",")
    assert len(parts) == 5_001
    assert str_["join"](parts, ",") == s
    assert len(str_["upper"](s)) == len(s)


# --- Boxed results ---

@pytest.mark.parametrize(
    "name,args",
    [
        ("replace", ("abc", "", "x")),
        ("padStart", ("abc", 2, "0")),
        ("padEnd", ("abc", 3, "-")),
        ("trimStart", ("hello", "")),
        ("trimEnd", ("hello", "")),
        ("trim", ("hello", "")),
    ],
)
def test_unchanged_inputs_come_back_boxed(str_, name, args):
    out = str_[name](*args)
    assert isinstance(out, OakString)
    assert out == args[0]


def test_cut_miss_returns_boxed_pair(str_):
    before, after = str_["cut"]("abc", "=")
    assert isinstance(before, OakString) and before == "abc"
    assert isinstance(after, OakString) and after == ""
