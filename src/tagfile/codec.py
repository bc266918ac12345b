"""Packed integer and offset codecs.

Both encodings are big-endian no matter which byte order the surrounding
records use.

Packed integers are 1 to 4 bytes; the leading bits of the first byte give
the width:

    0xxxxxxx                              7 bits
    10xxxxxx xxxxxxxx                     14 bits
    110xxxxx xxxxxxxx xxxxxxxx            21 bits
    1110xxxx xxxxxxxx xxxxxxxx xxxxxxxx   27 bits (bit 27 is dropped)

Offsets are 4 bytes whose top two bits are markers; section headers set
0x40000000.
"""

from __future__ import annotations

import struct

from tagfile.errors import CorruptIndexError, ValueOutOfRangeError

PACKED_INT_LIMIT = 0x8000000

OFFSET_MASK = 0x3FFFFFFF
OFFSET_MARKER = 0x40000000
OFFSET_SIZE = 4

_U16_BE = struct.Struct(">H")
_U32_BE = struct.Struct(">I")


def _need(data: bytes, pos: int, size: int) -> None:
    if pos < 0 or pos + size > len(data):
        raise CorruptIndexError(
            f"Need {size} bytes but only {max(len(data) - pos, 0)} remain",
            offset=pos,
        )


def decode_packed_int(data: bytes, pos: int = 0) -> tuple[int, int]:
    """Decode a packed integer at ``pos``.

    Returns:
        Tuple of (value, position after the integer).
    """
    _need(data, pos, 1)
    a = data[pos]
    if a < 0x80:
        return a, pos + 1
    if a & 0xC0 == 0x80:
        _need(data, pos, 2)
        return ((a << 8) | data[pos + 1]) & 0x3FFF, pos + 2
    if a & 0xE0 == 0xC0:
        _need(data, pos, 3)
        (b,) = _U16_BE.unpack_from(data, pos + 1)
        return ((a << 16) | b) & 0x1FFFFF, pos + 3
    if a & 0xF0 == 0xE0:
        _need(data, pos, 4)
        rest = int.from_bytes(data[pos + 1 : pos + 4], "big")
        return ((a << 24) | rest) & 0x7FFFFFF, pos + 4
    raise CorruptIndexError(f"Invalid packed integer lead byte 0x{a:02X}", offset=pos)


def packed_int_size(value: int) -> int:
    """Return the number of bytes ``encode_packed_int`` uses for ``value``."""
    if value < 0 or value >= PACKED_INT_LIMIT:
        raise ValueOutOfRangeError(
            f"Packed int value must be in [0, 0x{PACKED_INT_LIMIT:X}), got {value}"
        )
    if value < 0x80:
        return 1
    if value < 0x4000:
        return 2
    if value < 0x200000:
        return 3
    return 4


def encode_packed_int(value: int) -> bytes:
    """Encode ``value`` in the narrowest packed form."""
    size = packed_int_size(value)
    if size == 1:
        return bytes([value])
    if size == 2:
        return _U16_BE.pack(value | 0x8000)
    if size == 3:
        return bytes([(value >> 16) | 0xC0]) + _U16_BE.pack(value & 0xFFFF)
    return _U32_BE.pack(value | 0xE0000000)


def decode_offset(data: bytes, pos: int = 0) -> tuple[int, int]:
    """Decode a 30-bit offset, discarding the two marker bits."""
    _need(data, pos, OFFSET_SIZE)
    (raw,) = _U32_BE.unpack_from(data, pos)
    return raw & OFFSET_MASK, pos + OFFSET_SIZE


def encode_offset(value: int, marker: bool = True) -> bytes:
    """Encode a 30-bit offset, optionally tagged with the section marker."""
    if value < 0 or value > OFFSET_MASK:
        raise ValueOutOfRangeError(
            f"Offset must be in [0, 0x{OFFSET_MASK:X}], got {value}"
        )
    if marker:
        value |= OFFSET_MARKER
    return _U32_BE.pack(value)
