"""Building the item and patch tables from the INDX section."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tagfile.errors import CorruptIndexError
from tagfile.reader import SectionReader
from tagfile.sections import frame_sections, require_sections
from tagfile.types import TagType, TypeTable

logger = logging.getLogger(__name__)

# Low 24 bits of an item's flag word hold its type index
ITEM_TYPE_MASK = 0x00FFFFFF
ITEM_POINTER_BIT = 0x10000000

# flags + offset + count, little-endian uint32 each
ITEM_RECORD_SIZE = 12


@dataclass
class Item:
    """An object or array stored in the DATA blob."""

    type_index: int
    is_pointer: bool
    offset: int
    count: int
    type: TagType | None = field(default=None, repr=False)


@dataclass
class Patch:
    """Offsets in the DATA blob holding pointers to one type."""

    type_index: int
    offsets: list[int] = field(default_factory=list)
    type: TagType | None = field(default=None, repr=False)


class IndexTableBuilder:
    """Decodes the ITEM and PTCH sub-sections of INDX.

    Both sections are plain little-endian records read until the section is
    exhausted; a record cut short by the end of the section is corrupt.
    """

    SECTION = "INDX"
    REQUIRED_SECTIONS = ("ITEM", "PTCH")

    def __init__(self, types: TypeTable) -> None:
        """Initialize the builder.

        Args:
            types: Completed type table that items and patches refer to.
        """
        self.types = types

    def build(self, payload: bytes) -> tuple[list[Item], list[Patch]]:
        """Decode an INDX payload into (items, patches)."""
        sections = frame_sections(payload, self.SECTION)
        require_sections(sections, self.REQUIRED_SECTIONS, self.SECTION)

        items = self._read_items(SectionReader(sections["ITEM"], "ITEM"))
        patches = self._read_patches(SectionReader(sections["PTCH"], "PTCH"))
        logger.debug("INDX: %d items, %d patches", len(items), len(patches))
        return items, patches

    def _resolve(self, reader: SectionReader, type_index: int, offset: int) -> TagType | None:
        self.types.check_index(type_index, section=reader.name, offset=offset)
        return self.types.get(type_index)

    def _read_items(self, reader: SectionReader) -> list[Item]:
        if len(reader) % ITEM_RECORD_SIZE:
            raise reader.error(
                f"Section length {len(reader)} is not a multiple of {ITEM_RECORD_SIZE}",
                offset=len(reader) - len(reader) % ITEM_RECORD_SIZE,
            )

        items = []
        while not reader.at_end:
            start = reader.pos
            flags = reader.read_u32()
            type_index = flags & ITEM_TYPE_MASK
            item = Item(
                type_index=type_index,
                is_pointer=bool(flags & ITEM_POINTER_BIT),
                offset=reader.read_u32(),
                count=reader.read_u32(),
            )
            item.type = self._resolve(reader, type_index, start)
            items.append(item)
        return items

    def _read_patches(self, reader: SectionReader) -> list[Patch]:
        patches = []
        while not reader.at_end:
            start = reader.pos
            type_index = reader.read_u32()
            patch = Patch(type_index=type_index)
            patch.type = self._resolve(reader, type_index, start)

            count_offset = reader.pos
            count = reader.read_i32()
            if count < 0:
                raise CorruptIndexError(
                    f"Negative patch offset count {count}",
                    section=reader.name,
                    offset=count_offset,
                )
            if count * 4 > reader.remaining:
                raise reader.error(
                    f"Patch declares {count} offsets but only {reader.remaining} bytes remain"
                )
            patch.offsets = [reader.read_u32() for _ in range(count)]
            patches.append(patch)
        return patches
