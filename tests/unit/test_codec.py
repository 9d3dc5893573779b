"""
Tests for the fixed-size curve record encoding.
"""

import struct

import pytest

from bonding_curve import codec
from bonding_curve import (
    CurveState, InvalidParameters, RECORD_SIZE, U64_MAX,
    encode_state, decode_state,
)


def _raw(authority=b"admin", unit_id=b"MEME", initial_price=100, slope=10, supply=0, version=1):
    return struct.pack("<32s32sQQQB", authority, unit_id, initial_price, slope, supply, version)


class TestEncode:

    def test_record_size(self):
        assert RECORD_SIZE == 89
        assert len(encode_state(CurveState("admin", "MEME", 100, 10))) == RECORD_SIZE

    def test_struct_layout_matches_record_size(self):
        assert codec._RECORD.size == RECORD_SIZE

    def test_field_layout(self):
        data = encode_state(CurveState("admin", "MEME", 100, 10, total_supply=7))
        assert data[0:5] == b"admin"
        assert data[5:32] == b"\x00" * 27
        assert data[32:36] == b"MEME"
        assert data[64:72] == (100).to_bytes(8, "little")
        assert data[72:80] == (10).to_bytes(8, "little")
        assert data[80:88] == (7).to_bytes(8, "little")
        assert data[88] == 1

    def test_full_width_values(self):
        state = CurveState("a" * 32, "u" * 32, U64_MAX, U64_MAX, U64_MAX)
        assert decode_state(encode_state(state)) == state

    def test_nul_in_identity_rejected(self):
        with pytest.raises(ValueError, match="NUL"):
            encode_state(CurveState("ad\x00min", "MEME", 100, 10))


class TestDecode:

    def test_decode_raw_record(self):
        state = decode_state(_raw(supply=42))
        assert state == CurveState("admin", "MEME", 100, 10, total_supply=42)

    def test_multibyte_identity(self):
        state = CurveState("ädmin", "MËME", 1, 1)
        assert decode_state(encode_state(state)) == state

    def test_wrong_size(self):
        with pytest.raises(ValueError, match="89 bytes"):
            decode_state(_raw()[:-1])

    def test_unknown_version(self):
        with pytest.raises(ValueError, match="version"):
            decode_state(_raw(version=2))

    def test_zero_price_rejected(self):
        with pytest.raises(InvalidParameters):
            decode_state(_raw(initial_price=0))

    def test_invalid_utf8(self):
        with pytest.raises(ValueError, match="UTF-8"):
            decode_state(_raw(authority=b"\xff\xfe"))
