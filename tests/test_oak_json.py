import math

import pytest

from oak.oak_datatypes import Atom, Empty, OakString
from oak.oak_runtime import Runtime


@pytest.fixture
def json_():
    return Runtime().import_module("json")


def test_serialize_is_compact_and_sorted(json_):
    value = {"b": [1, 2.0, None], "a": Atom("x"), "s": OakString("q")}
    assert json_["serialize"](value) == '{"a":"x","b":[1,2,null],"s":"q"}'


@pytest.mark.parametrize(
    "value,expected",
    [
        (True, "true"),
        (1.5, "1.5"),
        (Empty, "null"),
        (math.inf, "null"),
        ("é", '"é"'),
        (len, "null"),
    ],
)
def test_serialize_scalars(json_, value, expected):
    assert json_["serialize"](value) == expected


def test_parse_boxes_strings(json_):
    out = json_["parse"]('{"a": [1, "x", null, true]}')
    assert out == {"a": [1, "x", None, True]}
    assert isinstance(out["a"][1], OakString)


def test_parse_malformed_returns_error_atom(json_):
    assert json_["parse"]("{bad") is Atom("error")
