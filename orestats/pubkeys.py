"""
pubkeys.py - Base58 <-> 32-byte public key conversion.

Rounds store ``rent_payer`` and ``top_miner`` as fixed 32-byte keys; callers
usually hold the base58 text form.
"""

from typing import Union

import base58

PUBKEY_LENGTH = 32


class InvalidPubkey(ValueError):
    """Raised when a value cannot be turned into a 32-byte public key."""


def decode_pubkey(value: Union[str, bytes, bytearray, memoryview]) -> bytes:
    """Return the 32 raw bytes for ``value``.

    Accepts base58 text or bytes that are already the raw key.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) == PUBKEY_LENGTH:
            return raw
        try:
            value = raw.decode("ascii")
        except UnicodeDecodeError:
            raise InvalidPubkey(f"expected {PUBKEY_LENGTH} bytes, got {len(raw)}")
    if not isinstance(value, str) or not value:
        raise InvalidPubkey(f"not a pubkey: {value!r}")
    try:
        raw = base58.b58decode(value.strip())
    except ValueError as e:
        raise InvalidPubkey(f"invalid base58 pubkey {value!r}: {e}") from e
    if len(raw) != PUBKEY_LENGTH:
        raise InvalidPubkey(
            f"pubkey {value!r} decodes to {len(raw)} bytes, expected {PUBKEY_LENGTH}"
        )
    return raw


def encode_pubkey(raw: bytes) -> str:
    if len(raw) != PUBKEY_LENGTH:
        raise InvalidPubkey(f"expected {PUBKEY_LENGTH} bytes, got {len(raw)}")
    return base58.b58encode(bytes(raw)).decode("ascii")
