"""
Unit tests for Secret payload encoding and comparison.
"""

import pytest

from secret_mirror_operator.errors import ValidationError
from secret_mirror_operator.utils.secret_data import (
    decode_secret_data,
    encode_secret_data,
    secret_data_equal,
)


class TestDecodeSecretData:
    def test_decodes_base64_values(self):
        assert decode_secret_data({"user": "YWRtaW4=", "empty": ""}) == {
            "user": b"admin",
            "empty": b"",
        }

    def test_none_is_empty(self):
        assert decode_secret_data(None) == {}

    def test_invalid_base64_names_the_key(self):
        with pytest.raises(ValidationError, match="data.token"):
            decode_secret_data({"token": "not base64!"})


class TestEncodeSecretData:
    def test_encodes_binary_values(self):
        assert encode_secret_data({"blob": b"\x00\xff"}) == {"blob": "AP8="}

    def test_none_is_empty(self):
        assert encode_secret_data(None) == {}


class TestSecretDataEqual:
    """Byte-exact, order-independent comparison."""

    def test_same_content_different_order(self):
        assert secret_data_equal({"a": b"1", "b": b"2"}, {"b": b"2", "a": b"1"})

    def test_different_value(self):
        assert not secret_data_equal({"a": b"1"}, {"a": b"2"})

    def test_missing_key(self):
        assert not secret_data_equal({"a": b"1", "b": b"2"}, {"a": b"1"})

    def test_extra_key_with_empty_value(self):
        assert not secret_data_equal({"a": b"1"}, {"a": b"1", "b": b""})

    def test_none_equals_empty(self):
        assert secret_data_equal(None, {})
        assert not secret_data_equal(None, {"a": b""})

    def test_trailing_whitespace_is_significant(self):
        assert not secret_data_equal({"a": b"value"}, {"a": b"value\n"})
