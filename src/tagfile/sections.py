"""Splitting buffers into named, length-prefixed sections."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from tagfile.errors import CorruptIndexError, FormatMismatchError, MissingSectionError
from tagfile.reader import SectionReader

logger = logging.getLogger(__name__)

# 4-byte offset + 4-character tag
SECTION_HEADER_SIZE = 8


def frame_sections(data: bytes, context: str = "") -> dict[str, bytes]:
    """Split ``data`` into sections keyed by tag.

    Each section is an offset holding its total length (header included),
    a 4-character ASCII tag, then ``length - 8`` payload bytes. Sections are
    read back to back until the buffer is exhausted.

    Args:
        data: Buffer holding nothing but sections.
        context: Name of the enclosing section, used in error messages.

    Returns:
        Mapping of tag to payload, in file order.
    """
    reader = SectionReader(data, context)
    sections: dict[str, bytes] = {}

    while not reader.at_end:
        start = reader.pos
        length = reader.read_offset()
        tag = reader.read_ascii(4)
        if length < SECTION_HEADER_SIZE:
            raise CorruptIndexError(
                f"Section '{tag}' declares length {length}, shorter than its header",
                section=context or None,
                offset=start,
            )
        if tag in sections:
            raise FormatMismatchError(
                f"Duplicate section '{tag}'",
                section=context or None,
                offset=start,
            )
        sections[tag] = reader.read_bytes(length - SECTION_HEADER_SIZE)
        logger.debug(
            "%s: section %s at 0x%X, %d payload bytes",
            context or "<root>",
            tag,
            start,
            length - SECTION_HEADER_SIZE,
        )

    return sections


def require_sections(
    sections: Mapping[str, bytes], names: Iterable[str], context: str = ""
) -> None:
    """Raise MissingSectionError for the first of ``names`` not in ``sections``."""
    for name in names:
        if name not in sections:
            raise MissingSectionError(
                f"Required section '{name}' not found", section=context or None
            )
