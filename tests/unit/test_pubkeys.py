"""
test_pubkeys.py - Base58 pubkey codec.
"""

import pytest

from orestats.pubkeys import InvalidPubkey, decode_pubkey, encode_pubkey


class TestDecode:

    def test_all_ones_is_zero_key(self):
        assert decode_pubkey("11111111111111111111111111111111") == bytes(32)

    def test_round_trip_text(self):
        raw = bytes(range(1, 33))
        assert decode_pubkey(encode_pubkey(raw)) == raw

    def test_raw_bytes_pass_through(self):
        raw = b"\xab" * 32
        assert decode_pubkey(raw) == raw
        assert decode_pubkey(memoryview(raw)) == raw
        assert decode_pubkey(bytearray(raw)) == raw

    def test_base58_as_ascii_bytes(self):
        text = encode_pubkey(b"\x07" * 32)
        assert decode_pubkey(text.encode("ascii")) == b"\x07" * 32

    def test_whitespace_is_stripped(self):
        assert decode_pubkey(" 11111111111111111111111111111111\n") == bytes(32)

    @pytest.mark.parametrize("value", ["", "0OIl", "not a key", "1111"])
    def test_invalid_text(self, value):
        with pytest.raises(InvalidPubkey):
            decode_pubkey(value)

    def test_short_raw_bytes(self):
        with pytest.raises(InvalidPubkey):
            decode_pubkey(b"\xff" * 31)

    def test_non_string(self):
        with pytest.raises(InvalidPubkey):
            decode_pubkey(12345)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            decode_pubkey("0")


class TestEncode:

    def test_zero_key(self):
        assert encode_pubkey(bytes(32)) == "1" * 32

    def test_wrong_length(self):
        with pytest.raises(InvalidPubkey):
            encode_pubkey(b"\x01" * 33)
