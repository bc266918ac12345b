"""tagfile - A decoder for tagged binary type/object containers."""

from tagfile.container import TagContainer, TagFileReader, read_tag_bytes, read_tag_file
from tagfile.errors import (
    CorruptIndexError,
    FormatMismatchError,
    MissingSectionError,
    TagFileError,
    UnsupportedFeatureError,
    ValueOutOfRangeError,
)
from tagfile.index_table import IndexTableBuilder, Item, Patch
from tagfile.type_table import TypeTableBuilder
from tagfile.types import (
    Interface,
    Member,
    TagFlag,
    TagType,
    TypeTable,
    TypeTemplate,
)
from tagfile.writer import TagWriter

__all__ = [
    # Main API
    "TagContainer",
    "TagFileReader",
    "read_tag_bytes",
    "read_tag_file",
    # Builders
    "TypeTableBuilder",
    "IndexTableBuilder",
    "TagWriter",
    # Decoded model
    "TagFlag",
    "TagType",
    "TypeTable",
    "TypeTemplate",
    "Member",
    "Interface",
    "Item",
    "Patch",
    # Errors
    "TagFileError",
    "FormatMismatchError",
    "MissingSectionError",
    "CorruptIndexError",
    "UnsupportedFeatureError",
    "ValueOutOfRangeError",
]

__version__ = "0.1.0"
