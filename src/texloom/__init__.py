"""
Texloom: render structured document trees to LaTeX.

Texloom takes a typed document tree (headings, paragraphs, lists, tables,
code, links, math, footnotes, ...) produced by an external parser and
renders it into one LaTeX artifact ready for an external toolchain.

Quick Start:
    >>> from texloom import render_document, LatexConfig
    >>> result = render_document(doc, LatexConfig(template="article"))
    >>> print(result.text)
    \\documentclass[11pt]{article}
    ...
    >>> result.warnings
    []

Pipeline:
    1. Rewrite passes (math-run merging, annotation stripping)
    2. Post-order walk with one transcoder per node kind
    3. Assembly of the body and zone buffers into a template

Trees as data:
    >>> from texloom import from_json
    >>> doc = from_json(path.read_text())
"""

from dataclasses import dataclass

from texloom.assembler import assemble_document
from texloom.config import DEFAULT_CONFIG, DEFAULT_TEMPLATES, LatexConfig
from texloom.errors import (
    CodeRefNotFoundError,
    MissingTemplateError,
    QuoteMismatchError,
    ReferenceNotFoundError,
    RenderError,
    TexloomError,
    UnknownDirectiveError,
)
from texloom.formatting import format_args, format_options
from texloom.location import SourceLocation
from texloom.nodes import (
    Block,
    BlockNode,
    Bold,
    Code,
    CodeBlock,
    Document,
    Entity,
    ExampleBlock,
    ExportSnippet,
    FootnoteDefinition,
    FootnoteReference,
    Heading,
    HorizontalRule,
    Image,
    Inline,
    InlineNode,
    Italic,
    Item,
    Keyword,
    LatexEnvironment,
    LatexFragment,
    LineBreak,
    Link,
    MathRun,
    Node,
    Paragraph,
    PlainList,
    QuoteBlock,
    RadioTarget,
    RawBlock,
    SpecialBlock,
    StrikeThrough,
    Subscript,
    Superscript,
    Table,
    TableCell,
    TableRow,
    Target,
    Text,
    Timestamp,
    Underline,
    Verbatim,
    Zone,
)
from texloom.passes import run_rewrite_passes
from texloom.references import ReferenceResolver
from texloom.renderers.latex import LatexRenderer
from texloom.renderers.protocol import TreeRenderer
from texloom.serialization import from_dict, from_json, to_dict, to_json
from texloom.visitor import BaseVisitor, transform

__version__ = "0.1.0"


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Outcome of a successful render.

    Attributes:
        text: The complete LaTeX document
        warnings: Non-fatal problems, in the order they happened

    """

    text: str
    warnings: tuple[str, ...] = ()


def render_document(doc: Document, config: LatexConfig | None = None) -> RenderResult:
    """Render a document tree to LaTeX.

    Runs the rewrite passes, walks the tree and assembles the result into
    the configured template. The input tree is not modified.

    Args:
        doc: Document root
        config: Render configuration (``DEFAULT_CONFIG`` if None)

    Returns:
        RenderResult with the LaTeX text and the collected warnings

    Raises:
        RenderError: If a node kind has no transcoder, or (as
            ReferenceNotFoundError / CodeRefNotFoundError) if a link or
            code reference resolves to nothing. No artifact is produced.

    Example:
        >>> result = render_document(doc)
        >>> result.text.startswith("\\\\section{")
        True

    """
    renderer = LatexRenderer(config)
    text = renderer.render(run_rewrite_passes(doc))
    return RenderResult(text=text, warnings=tuple(renderer.get_warnings()))


__all__ = [
    # Main API
    "render_document",
    "RenderResult",
    "LatexRenderer",
    "TreeRenderer",
    "run_rewrite_passes",
    "assemble_document",
    "format_args",
    "format_options",
    "ReferenceResolver",
    # Configuration
    "LatexConfig",
    "DEFAULT_CONFIG",
    "DEFAULT_TEMPLATES",
    # Errors
    "TexloomError",
    "RenderError",
    "ReferenceNotFoundError",
    "CodeRefNotFoundError",
    "QuoteMismatchError",
    "MissingTemplateError",
    "UnknownDirectiveError",
    # Tree
    "SourceLocation",
    "Zone",
    "Node",
    "BlockNode",
    "InlineNode",
    "Block",
    "Inline",
    "Document",
    "Heading",
    "Paragraph",
    "PlainList",
    "Item",
    "Table",
    "TableRow",
    "TableCell",
    "QuoteBlock",
    "SpecialBlock",
    "CodeBlock",
    "ExampleBlock",
    "LatexEnvironment",
    "RawBlock",
    "Keyword",
    "HorizontalRule",
    "FootnoteDefinition",
    "Text",
    "Bold",
    "Italic",
    "Underline",
    "StrikeThrough",
    "Code",
    "Verbatim",
    "Link",
    "Image",
    "FootnoteReference",
    "Timestamp",
    "LatexFragment",
    "Entity",
    "Subscript",
    "Superscript",
    "MathRun",
    "LineBreak",
    "Target",
    "RadioTarget",
    "ExportSnippet",
    # Visitor
    "BaseVisitor",
    "transform",
    # Serialization
    "to_dict",
    "from_dict",
    "to_json",
    "from_json",
    # Version
    "__version__",
]
