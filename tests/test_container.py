"""End-to-end tests for reading tag files."""

import pytest

from tag_builders import foo_file, indx_payload, sample_types, sections, tag_file, type_payload
from tagfile import TagFileReader, read_tag_bytes, read_tag_file
from tagfile.codec import encode_offset
from tagfile.errors import (
    CorruptIndexError,
    FormatMismatchError,
    MissingSectionError,
    TagFileError,
)
from tagfile.index_table import ITEM_POINTER_BIT


class TestReadTagBytes:
    """Tests for decoding whole files."""

    def test_single_type_file(self):
        """Test a file with one type and one item of it."""
        container = read_tag_bytes(foo_file())

        foo = container.types[1]
        assert foo.name == "Foo"
        assert foo.byte_size == 4
        assert foo.alignment == 4
        assert len(container.items) == 1
        item = container.items[0]
        assert item.type is foo
        assert item.is_pointer is False
        assert item.offset == 0
        assert item.count == 1
        assert container.patches == ()
        assert container.data == b""
        assert container.sdk_version == "20150100"

    def test_sample_file(self):
        data = bytes(range(48))
        container = read_tag_bytes(
            tag_file(
                type_payload(*sample_types()),
                indx_payload(
                    [(0, 0, 0), (3, 0, 1), (2 | ITEM_POINTER_BIT, 16, 2)],
                    [(4, [8])],
                ),
                data=data,
            )
        )
        assert container.data == data
        assert len(container.types) == 7
        assert [i.type.name for i in container.items if i.type] == ["Derived", "Base"]
        assert container.patches[0].type.name == "T*"

        derived_item = container.items_of_type("Derived")[0]
        assert container.item_data(derived_item) == data[:16]
        base_item = container.items_of_type("Base")[0]
        assert container.item_data(base_item) == data[16:24]
        assert container.items_of_type("Missing") == []

    def test_item_data_past_end(self):
        container = read_tag_bytes(foo_file())
        with pytest.raises(CorruptIndexError):
            container.item_data(container.items[0])

    def test_container_is_frozen(self):
        container = read_tag_bytes(foo_file())
        with pytest.raises(AttributeError):
            container.data = b"x"

    def test_independent_decodes(self):
        """Test that decoding twice gives unrelated containers."""
        first = read_tag_bytes(foo_file())
        second = read_tag_bytes(foo_file())
        assert first.types[1] is not second.types[1]
        assert first.types[1].name == second.types[1].name


class TestReadTagBytesErrors:
    """Tests for rejected files."""

    def test_length_mismatch(self):
        data = bytearray(foo_file())
        data[0:4] = encode_offset(len(data) + 4)
        with pytest.raises(FormatMismatchError):
            read_tag_bytes(bytes(data))

    def test_truncated_file(self):
        """Test that cutting the file breaks the declared length."""
        with pytest.raises(FormatMismatchError):
            read_tag_bytes(foo_file()[:-1])

    def test_too_short(self):
        with pytest.raises(FormatMismatchError):
            read_tag_bytes(b"\x40\x00")

    def test_bad_magic(self):
        data = bytearray(foo_file())
        data[4:8] = b"TAG1"
        with pytest.raises(FormatMismatchError) as exc_info:
            read_tag_bytes(bytes(data))
        assert exc_info.value.offset == 4

    def test_wrong_sdk_version(self):
        data = foo_file().replace(b"20150100", b"20160100")
        with pytest.raises(FormatMismatchError) as exc_info:
            read_tag_bytes(data)
        assert "20160100" in str(exc_info.value)
        assert exc_info.value.section == "SDKV"

    def test_missing_section(self):
        body = sections(("SDKV", b"20150100"), ("DATA", b""), ("TYPE", b""))
        data = encode_offset(len(body) + 8) + b"TAG0" + body
        with pytest.raises(MissingSectionError) as exc_info:
            read_tag_bytes(data)
        assert "INDX" in str(exc_info.value)

    def test_errors_share_base(self):
        """Test that callers can catch every failure as TagFileError."""
        with pytest.raises(TagFileError):
            read_tag_bytes(b"")
        with pytest.raises(ValueError):
            read_tag_bytes(b"")

    def test_supported_version_override(self):
        """Test that a reader subclass can accept another SDK version."""

        class NewerReader(TagFileReader):
            SUPPORTED_SDK_VERSION = "20160100"

        data = foo_file().replace(b"20150100", b"20160100")
        assert NewerReader().read_bytes(data).sdk_version == "20160100"


class TestReadTagFile:
    """Tests for reading from disk."""

    def test_read_file(self, tmp_path):
        path = tmp_path / "foo.hkt"
        path.write_bytes(foo_file())
        container = read_tag_file(path)
        assert container.types.find("Foo") is container.types[1]

    def test_read_file_str_path(self, tmp_path):
        path = tmp_path / "foo.hkt"
        path.write_bytes(foo_file())
        assert TagFileReader().read_file(str(path)).items[0].count == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_tag_file(tmp_path / "missing.hkt")
