"""Reference and label registry.

The resolver hands out one opaque reference per node *instance* and builds
LaTeX labels from it. Before rendering it indexes the document so links can
be resolved to their targets and coderef labels to line numbers.

Labels are prefixed by node kind:

==========================  ========
Node                        Prefix
==========================  ========
Heading                     ``sec:``
Table                       ``tab:``
Math LatexEnvironment       ``eq:``
Captioned figure paragraph  ``fig:``
anything else               (none)
==========================  ========

Example:
    >>> resolver = ReferenceResolver()
    >>> resolver.get_reference(node) == resolver.get_reference(node)
    True
    >>> resolver.get_label(heading, force=True)
    'sec:ref1'

"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import PurePosixPath

from texloom.errors import CodeRefNotFoundError, ReferenceNotFoundError
from texloom.escape import sanitize_label
from texloom.location import SourceLocation
from texloom.nodes import (
    BlockNode,
    CodeBlock,
    Document,
    Entity,
    FootnoteDefinition,
    Heading,
    Image,
    LatexEnvironment,
    LatexFragment,
    Link,
    Node,
    Paragraph,
    RadioTarget,
    Table,
    Target,
    Text,
    child_nodes,
)
from texloom.visitor import BaseVisitor

# Environments rendered in display math mode, compared case-insensitively.
# Starred variants are accepted and never numbered.
MATH_ENVIRONMENTS: frozenset[str] = frozenset({
    "align",
    "alignat",
    "darray",
    "dgroup",
    "displaymath",
    "dmath",
    "eqnarray",
    "equation",
    "flalign",
    "gather",
    "math",
    "multline",
    "subequations",
    "xalignat",
    "xxalignat",
})

# Math environments without equation numbers even when unstarred
_NUMBERLESS_ENVIRONMENTS = frozenset({"math", "displaymath"})

IMAGE_EXTENSIONS: frozenset[str] = frozenset({
    ".eps", ".jpeg", ".jpg", ".pdf", ".png", ".svg", ".tif", ".tiff",
})

_BEGIN_RE = re.compile(r"\\begin\{([A-Za-z]+\*?)\}")
_WHITESPACE_RE = re.compile(r"\s+")


def environment_name(value: str) -> str | None:
    """Name of the first environment opened in ``value``."""
    match = _BEGIN_RE.search(value)
    return match.group(1) if match else None


def is_math_environment(name: str | None) -> bool:
    """True for known math environments, starred or not, in any case."""
    if not name:
        return False
    return name.lower().removesuffix("*") in MATH_ENVIRONMENTS


def is_numbered_math(name: str | None) -> bool:
    """True for math environments that produce an equation number."""
    if name is None or not is_math_environment(name):
        return False
    return not name.endswith("*") and name.lower() not in _NUMBERLESS_ENVIRONMENTS


def is_image_link(link: Link) -> bool:
    """A description-less file link to an image is rendered inline."""
    return (
        link.kind == "file"
        and not link.children
        and PurePosixPath(link.path).suffix.lower() in IMAGE_EXTENSIONS
    )


def standalone_image(paragraph: Paragraph) -> Image | Link | None:
    """The only meaningful object of ``paragraph`` if it is an image."""
    meaningful = [
        child
        for child in paragraph.children
        if not (isinstance(child, Text) and not child.content.strip())
    ]
    if len(meaningful) != 1:
        return None
    candidate = meaningful[0]
    if isinstance(candidate, Image):
        return candidate
    if isinstance(candidate, Link) and is_image_link(candidate):
        return candidate
    return None


def is_figure(node: Node) -> bool:
    """A captioned or named paragraph holding a single image."""
    return (
        isinstance(node, Paragraph)
        and bool(node.caption or node.name)
        and standalone_image(node) is not None
    )


def label_prefix(node: Node) -> str:
    """Kind prefix for labels of ``node``. Pure: never allocates references."""
    match node:
        case Heading():
            return "sec:"
        case Table():
            return "tab:"
        case LatexEnvironment() if is_math_environment(environment_name(node.value)):
            return "eq:"
        case Paragraph() if is_figure(node):
            return "fig:"
        case _:
            return ""


def plain_text(nodes: Iterable[Node]) -> str:
    """Extract the plain text of inline nodes, as used for fuzzy matching."""
    parts: list[str] = []
    for node in nodes:
        match node:
            case Text():
                parts.append(node.content)
            case Entity():
                parts.append(node.utf8 or node.name)
            case LatexFragment():
                parts.append(node.value)
            case RadioTarget():
                parts.append(node.value)
            case Image():
                pass
            case _:
                value = getattr(node, "value", None)
                if isinstance(value, str):
                    parts.append(value)
                else:
                    parts.append(plain_text(child_nodes(node)))
        parts.append(" " * getattr(node, "post_blank", 0))
    return "".join(parts)


def _normalize(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip().lower()


class _TargetIndexer(BaseVisitor[None]):
    """Collects everything a link can point at."""

    def __init__(self, resolver: ReferenceResolver) -> None:
        self.resolver = resolver

    def visit_default(self, node: Node) -> None:
        if isinstance(node, BlockNode) and node.name:
            self.resolver._names.setdefault(node.name, node)

    def visit_heading(self, node: Heading) -> None:
        self.visit_default(node)
        if node.custom_id:
            self.resolver._custom_ids.setdefault(node.custom_id, node)
        if node.identifier:
            self.resolver._ids.setdefault(node.identifier, node)
        self.resolver._titles.setdefault(_normalize(plain_text(node.title)), node)

    def visit_target(self, node: Target) -> None:
        self.resolver._targets.setdefault(node.value, node)

    def visit_radio_target(self, node: RadioTarget) -> None:
        self.resolver._radio.setdefault(_normalize(node.value), node)

    def visit_footnote_definition(self, node: FootnoteDefinition) -> None:
        self.visit_default(node)
        self.resolver._footnotes.setdefault(node.label, node)

    def visit_code_block(self, node: CodeBlock) -> None:
        self.visit_default(node)
        self.resolver._code_blocks.append(node)


class ReferenceResolver:
    """Per-render registry of references, labels and link targets.

    References are bound to node identity and cached for the resolver's
    lifetime: repeated calls with the same instance return the same token,
    while equal but distinct nodes get distinct tokens. Tokens come from a
    counter, so a render of the same tree always allocates the same tokens
    in the same order.

    """

    __slots__ = (
        "_references",
        "_counter",
        "_names",
        "_custom_ids",
        "_ids",
        "_titles",
        "_targets",
        "_radio",
        "_footnotes",
        "_code_blocks",
        "_first_lines",
    )

    def __init__(self) -> None:
        # id(node) -> (node, reference); holding the node keeps its id unique
        self._references: dict[int, tuple[Node, str]] = {}
        self._counter = 0
        self._names: dict[str, Node] = {}
        self._custom_ids: dict[str, Heading] = {}
        self._ids: dict[str, Heading] = {}
        self._titles: dict[str, Heading] = {}
        self._targets: dict[str, Target] = {}
        self._radio: dict[str, RadioTarget] = {}
        self._footnotes: dict[str, FootnoteDefinition] = {}
        self._code_blocks: list[CodeBlock] = []
        self._first_lines: dict[int, int] = {}

    # -- References and labels -------------------------------------------------

    def get_reference(self, node: Node) -> str:
        """Return the reference of ``node``, allocating it on first use."""
        entry = self._references.get(id(node))
        if entry is not None:
            return entry[1]
        self._counter += 1
        reference = f"ref{self._counter}"
        self._references[id(node)] = (node, reference)
        return reference

    def get_label(self, node: Node, force: bool = False) -> str | None:
        """Return the LaTeX label of ``node``.

        Nodes without an explicit name, custom id or caption get no label
        unless ``force`` is set. The label is the kind prefix followed by
        the explicit key, or by the node's reference when there is none.
        """
        key = getattr(node, "custom_id", None) or getattr(node, "name", None)
        if key is None and not getattr(node, "caption", None) and not force:
            return None
        return label_prefix(node) + sanitize_label(key or self.get_reference(node))

    # -- Indexing and resolution -----------------------------------------------

    def index(self, doc: Document) -> None:
        """Collect link targets and code block line numbering from ``doc``."""
        _TargetIndexer(self).visit(doc)

        running = 0
        for block in self._code_blocks:
            if block.number_lines is None:
                continue
            start = block.number_offset
            if block.number_lines == "continued":
                start += running
            self._first_lines[id(block)] = start + 1
            running = start + len(block.value.rstrip("\n").split("\n"))

    def resolve_link(self, link: Link) -> Node:
        """Return the node an internal link points at.

        Raises:
            ReferenceNotFoundError: If nothing matches.
        """
        path = link.path
        target: Node | None
        match link.kind:
            case "custom-id":
                target = self._custom_ids.get(path.removeprefix("#"))
            case "id":
                target = self._ids.get(path)
            case "radio":
                target = self._radio.get(_normalize(path))
            case "fuzzy":
                if path.startswith("*"):
                    target = self._titles.get(_normalize(path[1:]))
                else:
                    target = (
                        self._targets.get(path)
                        or self._names.get(path)
                        or self._titles.get(_normalize(path))
                    )
            case _:
                target = None
        if target is None:
            raise ReferenceNotFoundError(link.kind, path, link.location)
        return target

    def footnote_definition(
        self, label: str, location: SourceLocation | None = None
    ) -> FootnoteDefinition:
        """Return the definition of footnote ``label``.

        Raises:
            ReferenceNotFoundError: If the footnote is never defined.
        """
        definition = self._footnotes.get(label)
        if definition is None:
            raise ReferenceNotFoundError("footnote", label, location)
        return definition

    def first_line_number(self, block: CodeBlock) -> int | None:
        """Number of the first line of a numbered block, else None."""
        return self._first_lines.get(id(block))

    def coderef_line(self, block: CodeBlock, label: str) -> int | None:
        """Line index (1-based) of coderef ``label`` inside ``block``."""
        marker = block.label_format % label
        for index, line in enumerate(block.value.split("\n"), start=1):
            if marker in line:
                return index
        return None

    def resolve_coderef(self, label: str, location: SourceLocation | None = None) -> int:
        """Line number a coderef link to ``label`` should display.

        Numbered blocks give the absolute line number; other blocks give the
        line's position within the block.

        Raises:
            CodeRefNotFoundError: If no code block contains the label.
        """
        for block in self._code_blocks:
            line = self.coderef_line(block, label)
            if line is None:
                continue
            first = self.first_line_number(block)
            return line if first is None else first + line - 1
        raise CodeRefNotFoundError(label, location)
