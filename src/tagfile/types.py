"""Type definitions decoded from the TYPE section."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntFlag

from tagfile.errors import CorruptIndexError

# Slot 0 of the type table never holds a type
NULL_TYPE_INDEX = 0


class TagFlag(IntFlag):
    """Bits saying which optional fields follow a type body."""

    SUBTYPE = 0x1
    POINTER = 0x2
    VERSION = 0x4
    BYTE_SIZE = 0x8
    ABSTRACT_VALUE = 0x10
    MEMBERS = 0x20
    INTERFACES = 0x40
    UNKNOWN = 0x80


# Subtype kinds from this value up carry a pointee type index
POINTER_SUBTYPE_MIN = 6
SUBTYPE_KIND_MASK = 0xF


@dataclass
class TypeTemplate:
    """A template parameter of a type, such as ``tT`` or ``vN``."""

    name: str
    value: int

    @property
    def is_type_index(self) -> bool:
        """Return whether ``value`` is an index into the type table.

        Type parameters are named with a leading ``t`` (``t``, ``tT``,
        ``tAllocator``); value parameters with a leading ``v``.
        """
        return self.name.startswith("t")


@dataclass
class Member:
    """A field of a structured type."""

    name: str
    flags: int
    byte_offset: int
    type_index: int
    type: TagType | None = field(default=None, repr=False)


@dataclass
class Interface:
    """An interface implemented by a type."""

    type_index: int
    value: int
    type: TagType | None = field(default=None, repr=False)


@dataclass(eq=False)
class TagType:
    """One entry of the type table.

    Fields gated by ``flags`` keep their zero defaults unless the matching
    bit is set. Raw indices are kept next to the resolved references; an
    index of 0 resolves to None.
    """

    index: int
    name: str = ""
    templates: list[TypeTemplate] = field(default_factory=list)
    parent_index: int = NULL_TYPE_INDEX
    flags: TagFlag = TagFlag(0)
    subtype_flags: int = 0
    pointer_index: int = NULL_TYPE_INDEX
    version: int = 0
    byte_size: int = 0
    alignment: int = 0
    abstract_value: int = 0
    members: list[Member] = field(default_factory=list)
    interfaces: list[Interface] = field(default_factory=list)
    hash: int = 0
    parent: TagType | None = field(default=None, repr=False)
    pointer: TagType | None = field(default=None, repr=False)

    def has_flag(self, flag: TagFlag) -> bool:
        return bool(self.flags & flag)

    @property
    def is_pointer(self) -> bool:
        return self.has_flag(TagFlag.POINTER)

    @property
    def has_pointee(self) -> bool:
        """Return whether the body carries a pointee type index."""
        return self.is_pointer and (self.subtype_flags & SUBTYPE_KIND_MASK) >= POINTER_SUBTYPE_MIN

    def get_member(self, name: str) -> Member | None:
        """Get a member by name."""
        for m in self.members:
            if m.name == name:
                return m
        return None

    def ancestors(self) -> Iterator[TagType]:
        """Yield the parent chain, nearest first."""
        seen = {self.index}
        current = self.parent
        while current is not None and current.index not in seen:
            seen.add(current.index)
            yield current
            current = current.parent

    def all_members(self) -> list[Member]:
        """Return inherited members followed by this type's own."""
        result: list[Member] = []
        for ancestor in reversed(list(self.ancestors())):
            result.extend(ancestor.members)
        result.extend(self.members)
        return result

    def __str__(self) -> str:
        parent = self.parent.name if self.parent is not None else "<none>"
        return f"TagType['{self.name}', parent={parent}]"


class TypeTable:
    """Dense table of types addressed by index.

    Slot 0 is a permanently empty sentinel meaning "no type"; real types
    occupy slots 1 to ``len(table) - 1``.
    """

    def __init__(self, count: int = 1) -> None:
        self._types: list[TagType | None] = [None]
        for i in range(1, count):
            self._types.append(TagType(index=i))

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[TagType]:
        for t in self._types[1:]:
            if t is not None:
                yield t

    def __getitem__(self, index: int) -> TagType | None:
        return self.get(index)

    def __contains__(self, name: str) -> bool:
        return self.find(name) is not None

    def check_index(self, index: int, section: str | None = None, offset: int | None = None) -> None:
        """Raise CorruptIndexError unless ``index`` addresses a slot."""
        if not 0 <= index < len(self._types):
            raise CorruptIndexError(
                f"Type index out of range [0, {len(self._types)})",
                section=section,
                offset=offset,
                index=index,
            )

    def get(self, index: int) -> TagType | None:
        """Get the type at ``index``; index 0 gives None."""
        self.check_index(index)
        return self._types[index]

    def get_or_raise(self, index: int) -> TagType:
        """Get the type at ``index``, raising for the sentinel slot."""
        t = self.get(index)
        if t is None:
            raise CorruptIndexError("Type index refers to the null slot", index=index)
        return t

    def find(self, name: str) -> TagType | None:
        """Get the first type with the given name."""
        for t in self:
            if t.name == name:
                return t
        return None

    def names(self) -> list[str]:
        """List type names in table order."""
        return [t.name for t in self]

    def template_type(self, template: TypeTemplate) -> TagType | None:
        """Resolve a type-valued template parameter."""
        if not template.is_type_index:
            raise ValueError(f"Template '{template.name}' does not hold a type index")
        return self.get(template.value)
