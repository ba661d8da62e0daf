"""Tree serialization: JSON round-trip for Texloom document trees.

Lets an external parser hand over a tree as plain data, and lets tests pin
rendering behavior with fixture files.

All output is deterministic (sorted keys).

Example:
    from texloom.serialization import to_json, from_json

    json_str = to_json(doc)
    restored = from_json(json_str)
    assert doc == restored

Thread Safety:
    All functions are pure and safe to call from any thread.

"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import fields
from enum import Enum
from typing import Any

from texloom import nodes
from texloom.location import SourceLocation
from texloom.nodes import Document, Node, Zone

# Registry of node type names to classes for deserialization
_NODE_TYPES: dict[str, type[Node]] = {
    cls.__name__: cls
    for cls in (
        nodes.Document,
        nodes.Heading,
        nodes.Paragraph,
        nodes.PlainList,
        nodes.Item,
        nodes.Table,
        nodes.TableRow,
        nodes.TableCell,
        nodes.QuoteBlock,
        nodes.SpecialBlock,
        nodes.CodeBlock,
        nodes.ExampleBlock,
        nodes.LatexEnvironment,
        nodes.RawBlock,
        nodes.Keyword,
        nodes.HorizontalRule,
        nodes.FootnoteDefinition,
        nodes.Text,
        nodes.Bold,
        nodes.Italic,
        nodes.Underline,
        nodes.StrikeThrough,
        nodes.Code,
        nodes.Verbatim,
        nodes.Link,
        nodes.Image,
        nodes.FootnoteReference,
        nodes.Timestamp,
        nodes.LatexFragment,
        nodes.Entity,
        nodes.Subscript,
        nodes.Superscript,
        nodes.MathRun,
        nodes.LineBreak,
        nodes.Target,
        nodes.RadioTarget,
        nodes.ExportSnippet,
    )
}

# Fields holding an enum, rebuilt from their value
_ENUM_FIELDS: dict[str, type[Enum]] = {"zone": Zone}

# Fields holding string mappings
_MAPPING_FIELDS = frozenset({"attributes", "properties"})


def to_dict(node: Node) -> dict[str, Any]:
    """Convert a node to a JSON-compatible dict.

    Includes a ``_type`` discriminator field for deserialization.

    Args:
        node: Any Texloom node.

    Returns:
        Dict with ``_type`` and all node fields.

    """
    result: dict[str, Any] = {"_type": type(node).__name__}
    for f in fields(node):
        result[f.name] = _serialize_value(getattr(node, f.name))
    return result


def _serialize_value(value: Any) -> Any:
    if isinstance(value, Node):
        return to_dict(value)
    if isinstance(value, SourceLocation):
        return {
            "_type": "SourceLocation",
            "lineno": value.lineno,
            "col_offset": value.col_offset,
            "source_file": value.source_file,
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {key: _serialize_value(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_serialize_value(item) for item in value]
    return value


def from_dict(data: Mapping[str, Any]) -> Node:
    """Reconstruct a typed node from a dict.

    A missing ``location`` becomes ``SourceLocation.unknown()`` so trees
    written by hand stay short.

    Raises:
        ValueError: If ``_type`` is missing or unknown.

    """
    type_name = data.get("_type")
    if type_name is None:
        msg = "Missing '_type' field in serialized node"
        raise ValueError(msg)

    node_cls = _NODE_TYPES.get(type_name)
    if node_cls is None:
        msg = f"Unknown node type: {type_name!r}"
        raise ValueError(msg)

    kwargs: dict[str, Any] = {}
    for f in fields(node_cls):
        if f.name not in data:
            continue
        raw = data[f.name]
        if f.name in _ENUM_FIELDS and raw is not None:
            kwargs[f.name] = _ENUM_FIELDS[f.name](raw)
        elif f.name in _MAPPING_FIELDS:
            kwargs[f.name] = dict(raw)
        else:
            kwargs[f.name] = _deserialize_value(raw)
    kwargs.setdefault("location", SourceLocation.unknown())
    return node_cls(**kwargs)


def _deserialize_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        if value.get("_type") == "SourceLocation":
            return SourceLocation(
                lineno=value["lineno"],
                col_offset=value["col_offset"],
                source_file=value.get("source_file"),
            )
        if value.get("_type") is not None:
            return from_dict(value)
        return dict(value)
    if isinstance(value, list):
        return tuple(_deserialize_value(item) for item in value)
    return value


def to_json(doc: Document, *, indent: int | None = None) -> str:
    """Serialize a Document to a JSON string (sorted keys)."""
    return json.dumps(to_dict(doc), sort_keys=True, indent=indent)


def from_json(data: str) -> Document:
    """Deserialize a Document from a JSON string.

    Raises:
        ValueError: If the JSON doesn't represent a Document.

    """
    node = from_dict(json.loads(data))
    if not isinstance(node, Document):
        msg = f"Expected Document, got {type(node).__name__}"
        raise ValueError(msg)
    return node
