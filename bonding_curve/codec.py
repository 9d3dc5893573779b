"""
codec.py - Fixed-Size Binary Encoding of the Curve Record

Layout (little endian, RECORD_SIZE = 89 bytes, field order significant):

    offset  size  field
    0       32    authority      UTF-8, NUL padded
    32      32    unit_id        UTF-8, NUL padded
    64      8     initial_price  u64
    72      8     slope          u64
    80      8     total_supply   u64
    88      1     version        u8
"""

import struct

from .core import CurveState, CURVE_FORMAT_VERSION, IDENTITY_BYTES, RECORD_SIZE


_RECORD = struct.Struct(f"<{IDENTITY_BYTES}s{IDENTITY_BYTES}sQQQB")

SUPPORTED_VERSIONS = frozenset({CURVE_FORMAT_VERSION})


def _pack_identity(value: str, name: str) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) > IDENTITY_BYTES:
        raise ValueError(f"{name} exceeds {IDENTITY_BYTES} bytes: {value!r}")
    if b"\x00" in raw:
        raise ValueError(f"{name} cannot contain NUL bytes")
    return raw


def _unpack_identity(raw: bytes, name: str) -> str:
    try:
        return raw.rstrip(b"\x00").decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"{name} is not valid UTF-8") from e


def encode_state(state: CurveState) -> bytes:
    """Serialize a CurveState to its RECORD_SIZE-byte record."""
    return _RECORD.pack(
        _pack_identity(state.authority, "authority"),
        _pack_identity(state.unit_id, "unit_id"),
        state.initial_price,
        state.slope,
        state.total_supply,
        state.version,
    )


def decode_state(data: bytes) -> CurveState:
    """
    Deserialize a record produced by encode_state().

    Raises:
        ValueError: If data has the wrong size, an unknown version or bad identities
        InvalidParameters: If the stored initial_price or slope is zero
    """
    if len(data) != RECORD_SIZE:
        raise ValueError(f"curve record must be {RECORD_SIZE} bytes, got {len(data)}")
    authority, unit_id, initial_price, slope, total_supply, version = _RECORD.unpack(data)
    if version not in SUPPORTED_VERSIONS:
        raise ValueError(f"unsupported curve record version {version}")
    return CurveState(
        authority=_unpack_identity(authority, "authority"),
        unit_id=_unpack_identity(unit_id, "unit_id"),
        initial_price=initial_price,
        slope=slope,
        total_supply=total_supply,
        version=version,
    )
