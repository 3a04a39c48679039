"""
Secret payload helpers.

Secret data travels base64-encoded over the Kubernetes API. Inside the
operator it is kept as raw bytes so comparisons are byte-exact.
"""

import base64
import binascii
from collections.abc import Mapping

from ..errors import ValidationError


def decode_secret_data(data: Mapping[str, str] | None) -> dict[str, bytes]:
    """
    Decode the base64 ``data`` field of a Secret.

    Args:
        data: Mapping of key to base64 string as returned by the API

    Returns:
        Mapping of key to raw bytes

    Raises:
        ValidationError: If a value is not valid base64
    """
    decoded: dict[str, bytes] = {}
    for key, value in (data or {}).items():
        try:
            decoded[key] = base64.b64decode(value or "", validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(
                f"value is not valid base64: {e}", field=f"data.{key}"
            ) from e
    return decoded


def encode_secret_data(data: Mapping[str, bytes] | None) -> dict[str, str]:
    """Encode raw Secret data for the API."""
    return {key: base64.b64encode(value).decode() for key, value in (data or {}).items()}


def secret_data_equal(
    left: Mapping[str, bytes] | None, right: Mapping[str, bytes] | None
) -> bool:
    """
    Compare two Secret payloads.

    Equal means the same set of keys and byte-identical values for every
    key. Insertion order is irrelevant; ``None`` counts as empty.
    """
    left = left or {}
    right = right or {}

    if set(left) != set(right):
        return False

    return all(bytes(left[key]) == bytes(right[key]) for key in sorted(left))
