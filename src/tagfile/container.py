"""Reading complete tag files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from tagfile.errors import CorruptIndexError, FormatMismatchError
from tagfile.index_table import IndexTableBuilder, Item, Patch
from tagfile.reader import SectionReader
from tagfile.sections import SECTION_HEADER_SIZE, frame_sections, require_sections
from tagfile.type_table import TypeTableBuilder
from tagfile.types import TypeTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagContainer:
    """Everything decoded from one tag file.

    ``data`` is the raw DATA section; items and patches hold offsets into it.
    """

    types: TypeTable
    items: tuple[Item, ...]
    patches: tuple[Patch, ...]
    data: bytes
    sdk_version: str

    def item_data(self, item: Item) -> bytes:
        """Return the bytes of the DATA blob covered by ``item``.

        The span is ``count`` elements of the item's type size, or ``count``
        bytes when the type declares no size.
        """
        size = item.type.byte_size if item.type is not None and item.type.byte_size else 1
        end = item.offset + item.count * size
        if end > len(self.data):
            raise CorruptIndexError(
                f"Item spans 0x{item.offset:X}-0x{end:X}, past the end of DATA ({len(self.data)} bytes)",
                section="DATA",
                offset=item.offset,
            )
        return self.data[item.offset : end]

    def items_of_type(self, name: str) -> list[Item]:
        """Get all items whose type has the given name."""
        return [i for i in self.items if i.type is not None and i.type.name == name]


class TagFileReader:
    """Decodes tag file bytes into a TagContainer."""

    MAGIC = "TAG0"
    SUPPORTED_SDK_VERSION = "20150100"
    REQUIRED_SECTIONS = ("SDKV", "DATA", "TYPE", "INDX")

    def read_bytes(self, data: bytes) -> TagContainer:
        """Decode a complete tag file held in memory.

        Raises:
            TagFileError: If the data is not a supported tag file.
        """
        data = bytes(data)
        if len(data) < SECTION_HEADER_SIZE:
            raise FormatMismatchError(
                f"File is {len(data)} bytes, too short for a {self.MAGIC} header"
            )

        header = SectionReader(data[:SECTION_HEADER_SIZE], self.MAGIC)
        declared = header.read_offset()
        if declared != len(data):
            raise FormatMismatchError(
                f"{self.MAGIC} declares {declared} bytes but the file is {len(data)} bytes",
                offset=0,
            )
        magic = header.read_bytes(4)
        if magic != self.MAGIC.encode("ascii"):
            raise FormatMismatchError(
                f"Expected magic '{self.MAGIC}', got {magic!r}", offset=4
            )

        sections = frame_sections(data[SECTION_HEADER_SIZE:], self.MAGIC)
        require_sections(sections, self.REQUIRED_SECTIONS, self.MAGIC)

        sdkv = sections["SDKV"]
        sdk_version = SectionReader(sdkv, "SDKV").read_ascii(len(sdkv))
        if sdk_version != self.SUPPORTED_SDK_VERSION:
            raise FormatMismatchError(
                f"Invalid SDK version '{sdk_version}', expected '{self.SUPPORTED_SDK_VERSION}'",
                section="SDKV",
            )
        logger.debug("SDK version %s", sdk_version)

        types = TypeTableBuilder().build(sections["TYPE"])
        items, patches = IndexTableBuilder(types).build(sections["INDX"])

        return TagContainer(
            types=types,
            items=tuple(items),
            patches=tuple(patches),
            data=sections["DATA"],
            sdk_version=sdk_version,
        )

    def read_file(self, path: Path | str) -> TagContainer:
        """Read and decode a tag file from disk."""
        path = Path(path)
        logger.debug("Reading %s", path)
        return self.read_bytes(path.read_bytes())


def read_tag_bytes(data: bytes) -> TagContainer:
    """Decode a tag file held in memory."""
    return TagFileReader().read_bytes(data)


def read_tag_file(path: Path | str) -> TagContainer:
    """Read and decode a tag file from disk."""
    return TagFileReader().read_file(path)
