"""Building the type table from the TYPE section."""

from __future__ import annotations

import logging

from tagfile.errors import CorruptIndexError, UnsupportedFeatureError
from tagfile.reader import SectionReader
from tagfile.sections import frame_sections, require_sections
from tagfile.types import (
    Interface,
    Member,
    TagFlag,
    TagType,
    TypeTable,
    TypeTemplate,
)

logger = logging.getLogger(__name__)


class TypeTableBuilder:
    """Decodes the sub-sections of TYPE into a linked TypeTable.

    TSTR and FSTR are the type-name and field-name string tables, TNAM
    assigns names and templates, TBOD holds type bodies and THSH holds
    identity hashes.
    """

    SECTION = "TYPE"
    REQUIRED_SECTIONS = ("TSTR", "FSTR", "TNAM", "TBOD", "THSH")

    def __init__(self) -> None:
        self.type_strings: list[str] = []
        self.field_strings: list[str] = []
        self.types = TypeTable()

    def build(self, payload: bytes) -> TypeTable:
        """Decode a TYPE payload.

        Args:
            payload: Contents of the TYPE section.

        Returns:
            The fully resolved type table.
        """
        sections = frame_sections(payload, self.SECTION)
        require_sections(sections, self.REQUIRED_SECTIONS, self.SECTION)

        self.type_strings = SectionReader(sections["TSTR"], "TSTR").read_string_list()
        self.field_strings = SectionReader(sections["FSTR"], "FSTR").read_string_list()
        logger.debug(
            "TYPE: %d type strings, %d field strings",
            len(self.type_strings),
            len(self.field_strings),
        )

        self._read_names(SectionReader(sections["TNAM"], "TNAM"))
        self._read_bodies(SectionReader(sections["TBOD"], "TBOD"))
        self._read_hashes(SectionReader(sections["THSH"], "THSH"))
        self._resolve()

        logger.debug("TYPE: decoded %d types", len(self.types) - 1)
        return self.types

    # ---- helpers ----

    def _read_string(self, reader: SectionReader, strings: list[str]) -> str:
        start = reader.pos
        index = reader.read_packed_int()
        if index >= len(strings):
            raise reader.error(
                f"String index out of range [0, {len(strings)})",
                index=index,
                offset=start,
            )
        return strings[index]

    def _read_type_index(self, reader: SectionReader) -> int:
        start = reader.pos
        index = reader.read_packed_int()
        self.types.check_index(index, section=reader.name, offset=start)
        return index

    # ---- TNAM ----

    def _read_names(self, reader: SectionReader) -> None:
        count = reader.read_packed_int()
        self.types = TypeTable(count)

        for t in self.types:
            t.name = self._read_string(reader, self.type_strings)
            template_count = reader.read_packed_int()
            for _ in range(template_count):
                name = self._read_string(reader, self.type_strings)
                value = reader.read_packed_int()
                t.templates.append(TypeTemplate(name=name, value=value))

    # ---- TBOD ----

    def _read_bodies(self, reader: SectionReader) -> None:
        bodies = 0
        while not reader.at_end:
            type_index = self._read_type_index(reader)
            if type_index == 0:
                continue
            self._read_body(reader, self.types.get_or_raise(type_index))
            bodies += 1
        logger.debug("TBOD: %d type bodies", bodies)

    def _read_body(self, reader: SectionReader, t: TagType) -> None:
        """Read one type body; the field order is fixed by the flag bits."""
        t.parent_index = self._read_type_index(reader)

        flags_offset = reader.pos
        flags = reader.read_packed_int()
        if flags & TagFlag.UNKNOWN:
            raise UnsupportedFeatureError(
                f"Type '{t.name}' sets the unknown flag 0x{int(TagFlag.UNKNOWN):X}",
                section=reader.name,
                offset=flags_offset,
                index=t.index,
            )
        t.flags = TagFlag(flags)

        if t.has_flag(TagFlag.SUBTYPE):
            t.subtype_flags = reader.read_packed_int()

        if t.has_pointee:
            t.pointer_index = self._read_type_index(reader)

        if t.has_flag(TagFlag.VERSION):
            t.version = reader.read_packed_int()

        if t.has_flag(TagFlag.BYTE_SIZE):
            t.byte_size = reader.read_packed_int()
            t.alignment = reader.read_packed_int()

        if t.has_flag(TagFlag.ABSTRACT_VALUE):
            t.abstract_value = reader.read_packed_int()

        if t.has_flag(TagFlag.MEMBERS):
            member_count = reader.read_packed_int()
            for _ in range(member_count):
                name = self._read_string(reader, self.field_strings)
                member_flags = reader.read_packed_int()
                byte_offset = reader.read_packed_int()
                type_index = self._read_type_index(reader)
                t.members.append(
                    Member(
                        name=name,
                        flags=member_flags,
                        byte_offset=byte_offset,
                        type_index=type_index,
                    )
                )

        if t.has_flag(TagFlag.INTERFACES):
            interface_count = reader.read_packed_int()
            for _ in range(interface_count):
                type_index = self._read_type_index(reader)
                value = reader.read_packed_int()
                t.interfaces.append(Interface(type_index=type_index, value=value))

    # ---- THSH ----

    def _read_hashes(self, reader: SectionReader) -> None:
        count = reader.read_packed_int()
        for _ in range(count):
            start = reader.pos
            type_index = self._read_type_index(reader)
            value = reader.read_u32(big_endian=True)
            if type_index == 0:
                raise CorruptIndexError(
                    "Hash assigned to the null type slot",
                    section=reader.name,
                    offset=start,
                    index=type_index,
                )
            self.types.get_or_raise(type_index).hash = value
        logger.debug("THSH: %d hashes", count)

    # ---- linking ----

    def _resolve(self) -> None:
        """Replace stored indices with references into the table."""
        for t in self.types:
            t.parent = self.types.get(t.parent_index)
            t.pointer = self.types.get(t.pointer_index)
            for m in t.members:
                m.type = self.types.get(m.type_index)
            for i in t.interfaces:
                i.type = self.types.get(i.type_index)
