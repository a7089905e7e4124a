import datetime
import json
from decimal import Decimal

import pytest

from litebridge.errors import UnsupportedDatatypeError
from litebridge.store import codec


@pytest.mark.parametrize(
    "value",
    [None, True, False, 0, -1, 2**53, 2**63 - 1, -(2**63), 1.5, -0.0, "hello", "", b"\x00\xff"],
)
def test_decode_passes_supported_values(value):
    decoded = codec.decode(value)
    assert decoded == value
    assert type(decoded) is type(value)


def test_decode_keeps_64_bit_precision():
    assert codec.decode(9007199254740993) == 9007199254740993


def test_decode_memoryview_as_bytes():
    assert codec.decode(memoryview(b"abc")) == b"abc"


@pytest.mark.parametrize(
    ("value", "name"),
    [
        (Decimal("1.5"), "Decimal"),
        (datetime.date(2024, 1, 1), "date"),
        (bytearray(b"x"), "bytearray"),
        ([1, 2], "list"),
    ],
)
def test_decode_rejects_other_types(value, name):
    with pytest.raises(UnsupportedDatatypeError, match=name):
        codec.decode(value)


def test_decode_rejects_integers_wider_than_64_bits():
    with pytest.raises(UnsupportedDatatypeError):
        codec.decode(2**63)


def test_decode_row_preserves_column_order():
    row = codec.decode_row(["b", "a", "c"], [2, 1, 3])
    assert list(row) == ["b", "a", "c"]
    assert row == {"a": 1, "b": 2, "c": 3}


def test_decode_row_duplicate_column_keeps_first_position_last_value():
    row = codec.decode_row(["x", "y", "x"], [1, 2, 3])
    assert list(row) == ["x", "y"]
    assert row["x"] == 3


def test_decode_row_fails_whole_row_on_one_bad_column():
    with pytest.raises(UnsupportedDatatypeError):
        codec.decode_row(["ok", "bad"], [1, Decimal("2")])


def test_encode_null_and_text():
    assert codec.encode(None) is None
    assert codec.encode("hi") == "hi"


def test_encode_numbers_bind_as_float():
    assert codec.encode(1) == 1.0
    assert isinstance(codec.encode(1), float)
    assert codec.encode(2.5) == 2.5


def test_encode_large_integers_lose_precision():
    assert codec.encode(2**53 + 1) == float(2**53)


def test_encode_huge_integer_is_unsupported():
    with pytest.raises(UnsupportedDatatypeError):
        codec.encode(10**400)


def test_encode_booleans_as_integers():
    assert codec.encode(True) == 1
    assert codec.encode(False) == 0
    assert not isinstance(codec.encode(True), bool)


def test_encode_bytes_as_blob():
    assert codec.encode(b"\x01") == b"\x01"
    assert codec.encode(bytearray(b"\x01")) == b"\x01"


def test_encode_containers_as_json_text():
    assert json.loads(codec.encode({"a": [1, 2]})) == {"a": [1, 2]}
    assert codec.encode([]) == "[]"


def test_encode_rejects_unknown_objects():
    with pytest.raises(UnsupportedDatatypeError, match="object"):
        codec.encode(object())


def test_encode_all_is_positional():
    assert codec.encode_all(["a", 1, None]) == ("a", 1.0, None)
    assert codec.encode_all(None) == ()
