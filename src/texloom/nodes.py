"""Typed document tree for Texloom.

All nodes are frozen dataclasses with slots for:
- Type safety: IDE autocomplete, catch errors at dev time
- Immutability: renderers can read the tree but never rewrite it
- Pattern matching: the renderer dispatches with ``match`` over node classes

Node Hierarchy:
Node (base)
├── BlockNode (elements: post_blank counts blank lines)
│   ├── Document
│   ├── Heading
│   ├── Paragraph
│   ├── PlainList / Item
│   ├── Table / TableRow / TableCell
│   ├── QuoteBlock / SpecialBlock
│   ├── CodeBlock / ExampleBlock
│   ├── LatexEnvironment / RawBlock
│   ├── Keyword / HorizontalRule
│   └── FootnoteDefinition
└── InlineNode (objects: post_blank counts trailing spaces)
    ├── Text
    ├── Bold / Italic / Underline / StrikeThrough
    ├── Code / Verbatim
    ├── Link / Image
    ├── FootnoteReference / Timestamp
    ├── LatexFragment / Entity / Subscript / Superscript / MathRun
    ├── LineBreak / Target / RadioTarget
    └── ExportSnippet

The tree is produced by an external parser (or loaded with
``texloom.serialization.from_json``). Block nodes share affiliated metadata:
an explicit ``name``, an optional ``caption`` and free-form ``attributes``
(the equivalent of ``#+ATTR_LATEX`` lines).

Identity matters: references are bound to node *instances*, so two headings
with the same title still get distinct labels.

"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from texloom.location import SourceLocation


class Zone(Enum):
    """Document region a heading can be routed into instead of the body."""

    BODY = "body"
    FRONTMATTER = "frontmatter"
    BACKMATTER = "backmatter"
    APPENDIX = "appendix"
    COPYING = "copying"
    INDEX = "index"


# =============================================================================
# Base Nodes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all tree nodes.

    All nodes track their source location for error messages.

    """

    location: SourceLocation


@dataclass(frozen=True, slots=True, kw_only=True)
class BlockNode(Node):
    """Base class for block-level elements.

    Attributes:
        post_blank: Number of blank lines following the element
        name: Explicit name (``#+NAME:``), used for labels and fuzzy links
        caption: Caption as inline nodes, or None
        attributes: Backend attributes (``:width``, ``:environment``, ...)

    """

    post_blank: int = 0
    name: str | None = None
    caption: tuple[Inline, ...] | None = None
    attributes: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class InlineNode(Node):
    """Base class for inline objects.

    Attributes:
        post_blank: Number of spaces following the object

    """

    post_blank: int = 0


# =============================================================================
# Inline Nodes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Text(InlineNode):
    """Plain text. Escaped for LaTeX on output."""

    content: str


@dataclass(frozen=True, slots=True)
class Bold(InlineNode):
    """Bold markup: ``*text*``."""

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Italic(InlineNode):
    """Italic markup: ``/text/``."""

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Underline(InlineNode):
    """Underline markup: ``_text_``."""

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class StrikeThrough(InlineNode):
    """Strike-through markup: ``+text+``."""

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Code(InlineNode):
    """Inline code: ``~code~``."""

    value: str


@dataclass(frozen=True, slots=True)
class Verbatim(InlineNode):
    """Inline verbatim: ``=verbatim=``."""

    value: str


@dataclass(frozen=True, slots=True)
class Link(InlineNode):
    """Hyperlink or cross-reference.

    ``kind`` selects how ``path`` is resolved:

    - ``fuzzy``: a name, target or heading title in this document
    - ``custom-id``: a heading's custom id
    - ``id``: a heading's unique id
    - ``radio``: a radio target (``path`` is the target text)
    - ``coderef``: a line label inside a code block
    - anything else (``https``, ``file``, ``mailto``, ...): external URI

    The description, if any, is in ``children``.

    """

    kind: str
    path: str
    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Image(InlineNode):
    """Inline image. ``attributes`` may carry width, height and options."""

    path: str
    attributes: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FootnoteReference(InlineNode):
    """Footnote reference.

    A labelled reference points at a ``FootnoteDefinition``. An anonymous
    inline footnote has ``label=None`` and carries its text in ``children``.

    """

    label: str | None
    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Timestamp(InlineNode):
    """Timestamp such as ``<2024-05-01 Wed>``; ``value`` is the raw text."""

    value: str
    kind: Literal["active", "inactive", "active-range", "inactive-range", "diary"] = "active"


@dataclass(frozen=True, slots=True)
class LatexFragment(InlineNode):
    """Inline LaTeX: ``$x$``, ``\\(x\\)``, ``\\[x\\]`` or a bare command."""

    value: str


@dataclass(frozen=True, slots=True)
class Entity(InlineNode):
    """Named entity such as ``\\alpha``.

    ``latex`` is its LaTeX form; ``latex_math`` tells whether that form
    needs math mode.

    """

    name: str
    latex: str
    latex_math: bool = False
    utf8: str = ""


@dataclass(frozen=True, slots=True)
class Subscript(InlineNode):
    """Subscript: ``x_{i}``."""

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Superscript(InlineNode):
    """Superscript: ``x^{2}``."""

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class MathRun(InlineNode):
    """Synthetic container for adjacent math-like objects.

    Produced by ``texloom.passes.merge_math_runs``; never built by parsers.

    """

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class LineBreak(InlineNode):
    """Forced line break: ``\\\\`` at end of line."""



@dataclass(frozen=True, slots=True)
class Target(InlineNode):
    """Dedicated target: ``<<target>>``."""

    value: str


@dataclass(frozen=True, slots=True)
class RadioTarget(InlineNode):
    """Radio target: ``<<<text>>>``. Every occurrence of ``value`` links here."""

    value: str
    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class ExportSnippet(InlineNode):
    """Backend-specific inline snippet: ``@@latex:\\newline@@``."""

    backend: str
    value: str


# PEP 695 type alias for inline objects
type Inline = (
    Text
    | Bold
    | Italic
    | Underline
    | StrikeThrough
    | Code
    | Verbatim
    | Link
    | Image
    | FootnoteReference
    | Timestamp
    | LatexFragment
    | Entity
    | Subscript
    | Superscript
    | MathRun
    | LineBreak
    | Target
    | RadioTarget
    | ExportSnippet
)


# =============================================================================
# Block Nodes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Heading(BlockNode):
    """Heading with its section content.

    ``children`` holds everything up to the next heading of the same or a
    higher level, including subheadings.

    Attributes:
        level: Outline depth, starting at 1
        title: Heading title as inline nodes
        children: Section content
        zone: Document region; None means the body
        custom_id: ``CUSTOM_ID`` property, used verbatim in the label
        identifier: ``ID`` property, target of ``id:`` links
        unnumbered: Render with the starred sectioning command
        tags: Heading tags

    """

    level: int
    title: tuple[Inline, ...]
    children: tuple[Block, ...] = ()
    zone: Zone | None = None
    custom_id: str | None = None
    identifier: str | None = None
    unnumbered: bool = False
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Paragraph(BlockNode):
    """Paragraph. A captioned paragraph holding one image is a figure."""

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Item(BlockNode):
    """List item.

    ``tag`` is the term of a descriptive item; ``checkbox`` is the state of a
    check box; ``counter`` forces the number of an ordered item.

    """

    children: tuple[Block, ...]
    tag: tuple[Inline, ...] | None = None
    checkbox: Literal["on", "off", "trans"] | None = None
    counter: int | None = None


@dataclass(frozen=True, slots=True)
class PlainList(BlockNode):
    """Ordered, unordered or descriptive list."""

    children: tuple[Item, ...]
    kind: Literal["ordered", "unordered", "descriptive"] = "unordered"


@dataclass(frozen=True, slots=True)
class TableCell(BlockNode):
    """Table cell. ``width`` is the width cookie (``<10>``) in characters."""

    children: tuple[Inline, ...]
    width: int | None = None


@dataclass(frozen=True, slots=True)
class TableRow(BlockNode):
    """Table row.

    ``rule`` rows are horizontal separators: they split the table into row
    groups and render nothing themselves. A ``colgroup`` row holds ``<``,
    ``>`` or ``<>`` cells marking column-group boundaries.

    """

    children: tuple[TableCell, ...]
    kind: Literal["standard", "rule", "colgroup"] = "standard"


@dataclass(frozen=True, slots=True)
class Table(BlockNode):
    """Table. Rows, rule rows and colgroup rows appear in source order."""

    children: tuple[TableRow, ...]


@dataclass(frozen=True, slots=True)
class QuoteBlock(BlockNode):
    """Quotation: ``#+BEGIN_QUOTE``."""

    children: tuple[Block, ...]


@dataclass(frozen=True, slots=True)
class SpecialBlock(BlockNode):
    """Custom block: ``#+BEGIN_<type>``, rendered as a LaTeX environment."""

    block_type: str
    children: tuple[Block, ...]


@dataclass(frozen=True, slots=True)
class CodeBlock(BlockNode):
    """Source code block.

    Attributes:
        value: The code
        language: Source language name, as written in the document
        number_lines: ``new`` restarts numbering, ``continued`` carries on
            from the previous numbered block, None disables numbering
        number_offset: Added to the first line number
        label_format: Pattern of coderef markers, ``%s`` is the label
        retain_labels: Keep marker text (as ``(label)``) in the output
        references: Coderef labels the block declares; each must occur

    """

    value: str
    language: str | None = None
    number_lines: Literal["new", "continued"] | None = None
    number_offset: int = 0
    label_format: str = "(ref:%s)"
    retain_labels: bool = False
    references: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ExampleBlock(BlockNode):
    """Example block, rendered verbatim."""

    value: str


@dataclass(frozen=True, slots=True)
class LatexEnvironment(BlockNode):
    """Raw ``\\begin{env} ... \\end{env}`` block."""

    value: str


@dataclass(frozen=True, slots=True)
class RawBlock(BlockNode):
    """Export block for a single backend: ``#+BEGIN_EXPORT latex``."""

    backend: str
    value: str


@dataclass(frozen=True, slots=True)
class Keyword(BlockNode):
    """Keyword line: ``#+TOC: headlines 2`` or ``#+LATEX: \\clearpage``."""

    key: str
    value: str


@dataclass(frozen=True, slots=True)
class HorizontalRule(BlockNode):
    """Horizontal rule: ``-----``."""



@dataclass(frozen=True, slots=True)
class FootnoteDefinition(BlockNode):
    """Footnote definition, rendered where it is referenced."""

    label: str
    children: tuple[Block, ...]


@dataclass(frozen=True, slots=True)
class Document(BlockNode):
    """Root node.

    ``properties`` holds document metadata: title, subtitle, author, date,
    email, description, keywords, language.

    """

    children: tuple[Block, ...]
    properties: Mapping[str, str] = field(default_factory=dict)


# PEP 695 type alias for block elements
type Block = (
    Document
    | Heading
    | Paragraph
    | PlainList
    | Item
    | Table
    | TableRow
    | TableCell
    | QuoteBlock
    | SpecialBlock
    | CodeBlock
    | ExampleBlock
    | LatexEnvironment
    | RawBlock
    | Keyword
    | HorizontalRule
    | FootnoteDefinition
)


# Fields holding inline sequences that are not part of ``children``
SECONDARY_FIELDS: tuple[str, ...] = ("title", "tag", "caption")


def child_nodes(node: Node) -> tuple[Node, ...]:
    """Return the ordered children of a node (empty for leaves)."""
    return getattr(node, "children", ())


def heading_zone(node: Heading) -> Zone:
    """Effective zone of a heading; an absent marker means the body."""
    return node.zone or Zone.BODY
