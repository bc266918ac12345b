"""Tests for the packed integer and offset codecs."""

import pytest

from tagfile.codec import (
    PACKED_INT_LIMIT,
    decode_offset,
    decode_packed_int,
    encode_offset,
    encode_packed_int,
    packed_int_size,
)
from tagfile.errors import CorruptIndexError, TagFileError, ValueOutOfRangeError


class TestPackedIntEncode:
    """Tests for encode_packed_int."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, b"\x00"),
            (0x7F, b"\x7f"),
            (0x80, b"\x80\x80"),
            (0x3FFF, b"\xbf\xff"),
            (0x4000, b"\xc0\x40\x00"),
            (0x1FFFFF, b"\xdf\xff\xff"),
            (0x200000, b"\xe0\x20\x00\x00"),
            (0x7FFFFFF, b"\xe7\xff\xff\xff"),
        ],
    )
    def test_known_encodings(self, value, expected):
        """Test the exact bytes at each width boundary."""
        assert encode_packed_int(value) == expected

    @pytest.mark.parametrize(
        "value,width",
        [
            (0, 1),
            (0x7F, 1),
            (0x80, 2),
            (0x3FFF, 2),
            (0x4000, 3),
            (0x1FFFFF, 3),
            (0x200000, 4),
            (0x7FFFFFF, 4),
        ],
    )
    def test_width(self, value, width):
        """Test that the narrowest width is chosen."""
        assert len(encode_packed_int(value)) == width
        assert packed_int_size(value) == width

    def test_too_large(self):
        """Test that values past 27 bits are rejected."""
        with pytest.raises(ValueOutOfRangeError):
            encode_packed_int(PACKED_INT_LIMIT)
        with pytest.raises(ValueOutOfRangeError):
            encode_packed_int(0xFFFFFFFF)

    def test_negative(self):
        """Test that negative values are rejected."""
        with pytest.raises(ValueOutOfRangeError):
            encode_packed_int(-1)

    def test_out_of_range_is_overflow(self):
        """Test that the range error is also an OverflowError."""
        with pytest.raises(OverflowError):
            encode_packed_int(PACKED_INT_LIMIT)


class TestPackedIntDecode:
    """Tests for decode_packed_int."""

    def test_round_trip_boundaries(self):
        """Test decoding what was encoded at and around each boundary."""
        for value in (0, 1, 0x7F, 0x80, 0x81, 0x3FFF, 0x4000, 0x1FFFFF, 0x200000, 0x7FFFFFF):
            encoded = encode_packed_int(value)
            assert decode_packed_int(encoded) == (value, len(encoded))

    def test_position_advances(self):
        """Test decoding consecutive values from one buffer."""
        data = encode_packed_int(5) + encode_packed_int(300) + encode_packed_int(70000)
        value, pos = decode_packed_int(data, 0)
        assert (value, pos) == (5, 1)
        value, pos = decode_packed_int(data, pos)
        assert (value, pos) == (300, 3)
        value, pos = decode_packed_int(data, pos)
        assert (value, pos) == (70000, 6)

    def test_four_byte_drops_bit_27(self):
        """Test that the 4-byte form only keeps 27 bits."""
        assert decode_packed_int(b"\xef\xff\xff\xff") == (0x7FFFFFF, 4)

    def test_truncated(self):
        """Test that a width running past the buffer is corrupt."""
        with pytest.raises(CorruptIndexError):
            decode_packed_int(b"\x80")
        with pytest.raises(CorruptIndexError):
            decode_packed_int(b"\xc0\x00")
        with pytest.raises(CorruptIndexError):
            decode_packed_int(b"")

    def test_invalid_lead_byte(self):
        """Test that a 1111 lead byte is not a packed integer."""
        with pytest.raises(CorruptIndexError) as exc_info:
            decode_packed_int(b"\xf0\x00\x00\x00\x00", 0)
        assert exc_info.value.offset == 0


class TestOffset:
    """Tests for the offset codec."""

    def test_encode_with_marker(self):
        """Test that the marker sets bit 30."""
        assert encode_offset(0x12345678) == b"\x52\x34\x56\x78"
        assert encode_offset(8, marker=True) == b"\x40\x00\x00\x08"

    def test_encode_without_marker(self):
        """Test that the top two bits stay clear without the marker."""
        encoded = encode_offset(0x12345678, marker=False)
        assert encoded == b"\x12\x34\x56\x78"
        assert encoded[0] & 0xC0 == 0

    def test_decode_masks_markers(self):
        """Test that both marker bits are discarded."""
        assert decode_offset(b"\xd2\x34\x56\x78") == (0x12345678, 4)
        assert decode_offset(b"\x40\x00\x00\x10") == (0x10, 4)

    def test_round_trip(self):
        """Test decoding encoded offsets with and without marker."""
        for value in (0, 8, 0x1000, 0x3FFFFFFF):
            for marker in (True, False):
                assert decode_offset(encode_offset(value, marker)) == (value, 4)

    def test_decode_at_position(self):
        """Test decoding an offset after other bytes."""
        assert decode_offset(b"\xff\xff" + encode_offset(12), 2) == (12, 6)

    def test_too_large(self):
        """Test that offsets must fit in 30 bits."""
        with pytest.raises(ValueOutOfRangeError):
            encode_offset(0x40000000)

    def test_truncated(self):
        """Test that fewer than 4 bytes is corrupt."""
        with pytest.raises(TagFileError):
            decode_offset(b"\x40\x00\x00")
