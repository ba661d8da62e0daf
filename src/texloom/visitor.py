"""Tree visitor and transformer for Texloom.

Provides a base visitor class with match-based dispatch and an immutable
transform function for rewriting frozen trees.

Example: collect all headings:

    class HeadingCollector(BaseVisitor[None]):
        def __init__(self) -> None:
            self.headings: list[Heading] = []

        def visit_heading(self, node: Heading) -> None:
            self.headings.append(node)

    collector = HeadingCollector()
    collector.visit(doc)

Example: demote every heading:

    def demote(node: Node) -> Node:
        if isinstance(node, Heading):
            return dataclasses.replace(node, level=node.level + 1)
        return node

    new_doc = transform(doc, demote)

Thread Safety:
    Visitors may accumulate mutable state; create one per walk. The
    transform function is pure.

"""

import dataclasses
from collections.abc import Callable

from texloom.nodes import (
    SECONDARY_FIELDS,
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
    child_nodes,
)


class BaseVisitor[T]:
    """Base tree visitor with match-based dispatch.

    Subclass and override ``visit_*`` methods for node types you care about.
    Unhandled node types fall through to ``visit_default``. Children are
    walked automatically after the ``visit_*`` call, followed by heading
    titles, item tags and captions.

    Type parameter ``T`` is the return type of visit methods (use ``None``
    for side-effect-only visitors).

    """

    def visit(self, node: Node) -> T:
        """Dispatch to the appropriate ``visit_*`` method, then walk children."""
        result = self._dispatch(node)
        self._walk_children(node)
        return result

    def visit_default(self, node: Node) -> T:
        """Called for node types without a specific ``visit_*`` method."""
        return None  # type: ignore[return-value]

    # -- Block visitors --------------------------------------------------------

    def visit_document(self, node: Document) -> T:
        return self.visit_default(node)

    def visit_heading(self, node: Heading) -> T:
        return self.visit_default(node)

    def visit_paragraph(self, node: Paragraph) -> T:
        return self.visit_default(node)

    def visit_plain_list(self, node: PlainList) -> T:
        return self.visit_default(node)

    def visit_item(self, node: Item) -> T:
        return self.visit_default(node)

    def visit_table(self, node: Table) -> T:
        return self.visit_default(node)

    def visit_table_row(self, node: TableRow) -> T:
        return self.visit_default(node)

    def visit_table_cell(self, node: TableCell) -> T:
        return self.visit_default(node)

    def visit_quote_block(self, node: QuoteBlock) -> T:
        return self.visit_default(node)

    def visit_special_block(self, node: SpecialBlock) -> T:
        return self.visit_default(node)

    def visit_code_block(self, node: CodeBlock) -> T:
        return self.visit_default(node)

    def visit_example_block(self, node: ExampleBlock) -> T:
        return self.visit_default(node)

    def visit_latex_environment(self, node: LatexEnvironment) -> T:
        return self.visit_default(node)

    def visit_raw_block(self, node: RawBlock) -> T:
        return self.visit_default(node)

    def visit_keyword(self, node: Keyword) -> T:
        return self.visit_default(node)

    def visit_horizontal_rule(self, node: HorizontalRule) -> T:
        return self.visit_default(node)

    def visit_footnote_definition(self, node: FootnoteDefinition) -> T:
        return self.visit_default(node)

    # -- Inline visitors -------------------------------------------------------

    def visit_text(self, node: Text) -> T:
        return self.visit_default(node)

    def visit_markup(self, node: Bold | Italic | Underline | StrikeThrough) -> T:
        return self.visit_default(node)

    def visit_code(self, node: Code | Verbatim) -> T:
        return self.visit_default(node)

    def visit_link(self, node: Link) -> T:
        return self.visit_default(node)

    def visit_image(self, node: Image) -> T:
        return self.visit_default(node)

    def visit_footnote_reference(self, node: FootnoteReference) -> T:
        return self.visit_default(node)

    def visit_timestamp(self, node: Timestamp) -> T:
        return self.visit_default(node)

    def visit_latex_fragment(self, node: LatexFragment) -> T:
        return self.visit_default(node)

    def visit_entity(self, node: Entity) -> T:
        return self.visit_default(node)

    def visit_script(self, node: Subscript | Superscript) -> T:
        return self.visit_default(node)

    def visit_math_run(self, node: MathRun) -> T:
        return self.visit_default(node)

    def visit_line_break(self, node: LineBreak) -> T:
        return self.visit_default(node)

    def visit_target(self, node: Target) -> T:
        return self.visit_default(node)

    def visit_radio_target(self, node: RadioTarget) -> T:
        return self.visit_default(node)

    def visit_export_snippet(self, node: ExportSnippet) -> T:
        return self.visit_default(node)

    # -- Internal dispatch -----------------------------------------------------

    def _dispatch(self, node: Node) -> T:
        """Match-based dispatch to visit_* methods."""
        match node:
            case Document():
                return self.visit_document(node)
            case Heading():
                return self.visit_heading(node)
            case Paragraph():
                return self.visit_paragraph(node)
            case PlainList():
                return self.visit_plain_list(node)
            case Item():
                return self.visit_item(node)
            case Table():
                return self.visit_table(node)
            case TableRow():
                return self.visit_table_row(node)
            case TableCell():
                return self.visit_table_cell(node)
            case QuoteBlock():
                return self.visit_quote_block(node)
            case SpecialBlock():
                return self.visit_special_block(node)
            case CodeBlock():
                return self.visit_code_block(node)
            case ExampleBlock():
                return self.visit_example_block(node)
            case LatexEnvironment():
                return self.visit_latex_environment(node)
            case RawBlock():
                return self.visit_raw_block(node)
            case Keyword():
                return self.visit_keyword(node)
            case HorizontalRule():
                return self.visit_horizontal_rule(node)
            case FootnoteDefinition():
                return self.visit_footnote_definition(node)
            case Text():
                return self.visit_text(node)
            case Bold() | Italic() | Underline() | StrikeThrough():
                return self.visit_markup(node)
            case Code() | Verbatim():
                return self.visit_code(node)
            case Link():
                return self.visit_link(node)
            case Image():
                return self.visit_image(node)
            case FootnoteReference():
                return self.visit_footnote_reference(node)
            case Timestamp():
                return self.visit_timestamp(node)
            case LatexFragment():
                return self.visit_latex_fragment(node)
            case Entity():
                return self.visit_entity(node)
            case Subscript() | Superscript():
                return self.visit_script(node)
            case MathRun():
                return self.visit_math_run(node)
            case LineBreak():
                return self.visit_line_break(node)
            case Target():
                return self.visit_target(node)
            case RadioTarget():
                return self.visit_radio_target(node)
            case ExportSnippet():
                return self.visit_export_snippet(node)
            case _:
                return self.visit_default(node)

    def _walk_children(self, node: Node) -> None:
        """Recursively visit children, then titles, tags and captions."""
        for child in child_nodes(node):
            self.visit(child)
        for name in SECONDARY_FIELDS:
            for child in getattr(node, name, None) or ():
                self.visit(child)


def transform(
    doc: Document,
    fn: Callable[[Node], Node | None],
    *,
    skip: Callable[[Node], bool] | None = None,
) -> Document:
    """Apply a function to every node in the tree, returning a new tree.

    The function ``fn`` is called bottom-up: children are transformed first,
    then the parent is transformed with its new children. This ensures ``fn``
    always receives nodes with already-transformed children.

    Return ``None`` from ``fn`` to remove a node from the tree. The root
    Document cannot be removed; returning None for it raises TypeError.

    Nodes for which ``skip`` returns True are kept as they are, subtree
    included, and ``fn`` is not called on them.

    Unchanged subtrees are shared with the input tree (same instances).

    Args:
        doc: The document to transform.
        fn: Function that receives a node and returns a (possibly new) node,
            or None to remove the node from the tree.
        skip: Optional predicate selecting subtrees to leave alone.

    Returns:
        A new Document with the transformation applied.

    """
    result = _transform_node(doc, fn, skip)
    if result is None or not isinstance(result, Document):
        msg = "transform fn must return a Document for the root (cannot remove root)"
        raise TypeError(msg)
    return result


def _transform_node(
    node: Node,
    fn: Callable[[Node], Node | None],
    skip: Callable[[Node], bool] | None,
) -> Node | None:
    """Transform a single node bottom-up: children first, then self."""
    if skip is not None and skip(node):
        return node
    transformed = _transform_children(node, fn, skip)
    return fn(transformed)


def _transform_children(
    node: Node,
    fn: Callable[[Node], Node | None],
    skip: Callable[[Node], bool] | None,
) -> Node:
    """Produce a new node with children transformed; filter out None (removed) nodes."""

    def _filtered(children: tuple[Node, ...]) -> tuple[Node, ...]:
        return tuple(
            result for c in children
            if (result := _transform_node(c, fn, skip)) is not None
        )

    changes: dict[str, tuple[Node, ...]] = {}
    for name in ("children", *SECONDARY_FIELDS):
        sequence = getattr(node, name, None)
        if not sequence:
            continue
        new_sequence = _filtered(sequence)
        if len(new_sequence) != len(sequence) or any(
            a is not b for a, b in zip(new_sequence, sequence, strict=True)
        ):
            changes[name] = new_sequence

    if changes:
        return dataclasses.replace(node, **changes)
    return node
