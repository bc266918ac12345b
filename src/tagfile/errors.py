"""Exceptions raised while decoding tag files."""

from __future__ import annotations


class TagFileError(ValueError):
    """Base class for every decode failure.

    Each error optionally records where it happened: the section tag being
    decoded, the byte offset inside that section, and the offending index.
    """

    def __init__(
        self,
        message: str,
        *,
        section: str | None = None,
        offset: int | None = None,
        index: int | None = None,
    ) -> None:
        self.message = message
        self.section = section
        self.offset = offset
        self.index = index
        super().__init__(self._format())

    def _format(self) -> str:
        context = []
        if self.section is not None:
            context.append(f"section {self.section}")
        if self.offset is not None:
            context.append(f"offset 0x{self.offset:X}")
        if self.index is not None:
            context.append(f"index {self.index}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class FormatMismatchError(TagFileError):
    """Declared length, magic tag or SDK version does not match."""


class MissingSectionError(TagFileError):
    """A required named section is absent."""


class CorruptIndexError(TagFileError):
    """An index is out of range or a record ends past its buffer."""


class UnsupportedFeatureError(TagFileError, NotImplementedError):
    """The file uses a flag combination this decoder does not understand."""


class ValueOutOfRangeError(TagFileError, OverflowError):
    """A value is too large for the encoding it was given to."""
