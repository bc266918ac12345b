"""Tool for dumping decoded tag files to the console."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import IO, Any

from tagfile.container import TagContainer, read_tag_file
from tagfile.errors import TagFileError
from tagfile.types import TagFlag, TagType, TypeTable

logger = logging.getLogger(__name__)


def type_to_element(t: TagType) -> ET.Element:
    """Build the <type> element for one type."""
    elem = ET.Element("type")
    elem.set("alignment", str(t.alignment))
    elem.set("byteSize", str(t.byte_size))
    elem.set("flags", str(int(t.flags)))
    if t.hash:
        elem.set("hash", str(t.hash))
    elem.set("id", str(t.index))
    elem.set("name", t.name)
    if t.parent_index:
        elem.set("parent", str(t.parent_index))
    if t.has_flag(TagFlag.POINTER):
        elem.set("pointer", str(t.pointer_index))
    if t.has_flag(TagFlag.SUBTYPE):
        elem.set("subTypeFlags", str(t.subtype_flags))
    if t.has_flag(TagFlag.VERSION):
        elem.set("version", str(t.version))

    for template in t.templates:
        ET.SubElement(
            elem, "template", {"name": template.name, "value": str(template.value)}
        )

    if t.has_flag(TagFlag.MEMBERS):
        for m in t.members:
            ET.SubElement(
                elem,
                "member",
                {
                    "flags": str(m.flags),
                    "name": m.name,
                    "offset": str(m.byte_offset),
                    "type": str(m.type_index),
                },
            )

    if t.has_flag(TagFlag.INTERFACES):
        for i in t.interfaces:
            ET.SubElement(
                elem, "interface", {"flags": str(i.value), "type": str(i.type_index)}
            )

    return elem


def types_to_element(types: TypeTable) -> ET.Element:
    """Build a <types> tree with one <type> per table entry."""
    root = ET.Element("types")
    for t in types:
        root.append(type_to_element(t))
    return root


def dump_types_xml(types: TypeTable, out: Path | str | IO[bytes]) -> None:
    """Write the type table as indented XML."""
    tree = ET.ElementTree(types_to_element(types))
    ET.indent(tree)
    tree.write(out, encoding="utf-8", xml_declaration=True)


def type_to_json(t: TagType) -> dict[str, Any]:
    """Serialize a type; optional fields appear only when their flag is set."""
    result: dict[str, Any] = {
        "id": t.index,
        "name": t.name,
        "flags": int(t.flags),
    }
    if t.templates:
        result["templates"] = [{"name": tp.name, "value": tp.value} for tp in t.templates]
    if t.parent_index:
        result["parent"] = t.parent_index
    if t.has_flag(TagFlag.SUBTYPE):
        result["subtype_flags"] = t.subtype_flags
    if t.has_pointee:
        result["pointer"] = t.pointer_index
    if t.has_flag(TagFlag.VERSION):
        result["version"] = t.version
    if t.has_flag(TagFlag.BYTE_SIZE):
        result["byte_size"] = t.byte_size
        result["alignment"] = t.alignment
    if t.has_flag(TagFlag.ABSTRACT_VALUE):
        result["abstract_value"] = t.abstract_value
    if t.has_flag(TagFlag.MEMBERS):
        result["members"] = [
            {
                "name": m.name,
                "flags": m.flags,
                "offset": m.byte_offset,
                "type": m.type_index,
            }
            for m in t.members
        ]
    if t.has_flag(TagFlag.INTERFACES):
        result["interfaces"] = [{"type": i.type_index, "value": i.value} for i in t.interfaces]
    if t.hash:
        result["hash"] = t.hash
    return result


def container_to_json(container: TagContainer) -> dict[str, Any]:
    """Serialize a container to JSON-compatible data (DATA is summarized)."""
    return {
        "sdk_version": container.sdk_version,
        "data_size": len(container.data),
        "types": [type_to_json(t) for t in container.types],
        "items": [
            {
                "type": item.type_index,
                "pointer": item.is_pointer,
                "offset": item.offset,
                "count": item.count,
            }
            for item in container.items
        ],
        "patches": [
            {"type": patch.type_index, "offsets": list(patch.offsets)}
            for patch in container.patches
        ],
    }


def print_summary(container: TagContainer, limit: int | None = None) -> None:
    """Print counts followed by a table of items."""
    print(f"SDK version: {container.sdk_version}")
    print(f"Types: {len(container.types) - 1}")
    print(f"Items: {len(container.items)}")
    print(f"Patches: {len(container.patches)}")
    print(f"Data: {len(container.data)} bytes")
    print("-" * 60)

    items = container.items
    display = items[:limit] if limit else items
    print(f"{'#':>4}  {'type':<32} {'offset':>10} {'count':>8}  ptr")
    for i, item in enumerate(display):
        name = item.type.name if item.type is not None else "<none>"
        ptr = "*" if item.is_pointer else ""
        print(f"{i:>4}  {name:<32} {item.offset:>#10x} {item.count:>8}  {ptr}")

    if limit and len(items) > limit:
        print(f"... ({len(items) - limit} more items)")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Dump the contents of a tag file"
    )
    parser.add_argument(
        "file",
        type=Path,
        help="Path to the tag file",
    )
    parser.add_argument(
        "-f", "--format",
        choices=("summary", "xml", "json"),
        default="summary",
        help="Output format: item summary, XML type tree, or JSON",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Write xml or json output to this file instead of stdout",
    )
    parser.add_argument(
        "-n", "--limit",
        type=int,
        default=None,
        help="Limit number of items shown in the summary",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log decoding progress (repeat for debug output)",
    )

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if not args.file.exists():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        return 1

    try:
        container = read_tag_file(args.file)
    except (TagFileError, OSError) as e:
        print(f"Error reading {args.file}: {e}", file=sys.stderr)
        return 1

    logger.info(
        "Decoded %s: %d types, %d items",
        args.file,
        len(container.types) - 1,
        len(container.items),
    )

    try:
        if args.format == "xml":
            if args.output is not None:
                dump_types_xml(container.types, args.output)
            else:
                dump_types_xml(container.types, sys.stdout.buffer)
                sys.stdout.buffer.write(b"\n")
        elif args.format == "json":
            text = json.dumps(container_to_json(container), indent=2)
            if args.output is not None:
                args.output.write_text(text + "\n")
            else:
                print(text)
        else:
            print_summary(container, args.limit)
    except OSError as e:
        print(f"Error writing {args.output}: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
