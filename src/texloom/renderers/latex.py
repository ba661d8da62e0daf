"""LaTeX renderer.

Renders a document tree to LaTeX in a single post-order walk: the children
of a node are rendered first, then the node's transcoder receives the
concatenated child output and decides what the node itself contributes.

Traversal:
    Each child's output is followed by its ``post_blank`` spacing (spaces
    after inline objects, newlines after blocks). A transcoder that returns
    None contributes nothing, not even that spacing; zone headings use this
    to leave the body and land in their zone buffer instead.

Thread Safety:
    All per-render state lives in a RenderContext created fresh for each
    render() call. A LatexRenderer holds only its immutable config and may be
    shared between threads.

"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from pathlib import PurePosixPath

from texloom.assembler import assemble_document
from texloom.config import DEFAULT_CONFIG, LatexConfig
from texloom.context import RenderContext
from texloom.errors import (
    CodeRefNotFoundError,
    QuoteMismatchError,
    RenderError,
    UnknownDirectiveError,
)
from texloom.escape import escape_text, escape_texttt, escape_url, strip_math_delimiters
from texloom.formatting import format_args, format_options
from texloom.nodes import (
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
    SECONDARY_FIELDS,
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
    child_nodes,
    heading_zone,
)
from texloom.quotes import delimiters_for, smart_quotes
from texloom.references import (
    environment_name,
    is_figure,
    is_image_link,
    is_math_environment,
    is_numbered_math,
)
from texloom.tables import TableGeometry, attribute_flag, cell_style, column_spec
from texloom.utils.logger import get_logger

logger = get_logger(__name__)

# Backends whose raw blocks and snippets are copied to the output
LATEX_BACKENDS = frozenset({"latex", "tex"})

_LIST_ENVIRONMENTS: dict[str, str] = {
    "ordered": "enumerate",
    "unordered": "itemize",
    "descriptive": "description",
}

_CHECKBOXES: dict[str, str] = {
    "on": "$\\boxtimes$",
    "off": "$\\square$",
    "trans": "$\\boxminus$",
}

# enumerate counters by nesting depth
_ENUM_COUNTERS = ("enumi", "enumii", "enumiii", "enumiv")

_FIGURE_FLOATS: dict[str, str] = {
    "figure": "figure",
    "multicolumn": "figure*",
    "sideways": "sidewaysfigure",
}

_TABLE_FLOATS: dict[str, str] = {
    "table": "table",
    "multicolumn": "table*",
    "sideways": "sidewaystable",
}

_WIDTH_ENVIRONMENTS = frozenset({"tabularx", "tabulary", "tabular*"})


def _fill(template: str, text: str) -> str:
    """Substitute ``text`` for the first ``%s`` of ``template``.

    Plain replacement, so ``%`` characters in ``text`` are left alone.
    """
    return template.replace("%s", text, 1)


def _prints_caption(node: Node) -> bool:
    """True for blocks whose transcoder outputs their caption."""
    return is_figure(node) or isinstance(node, (Table, CodeBlock))


class LatexRenderer:
    """Render a document tree to LaTeX.

    Usage:
        >>> renderer = LatexRenderer(LatexConfig(template="article"))
        >>> latex = renderer.render(doc)
        >>> renderer.get_warnings()
        []

    Thread Safety:
        Multiple threads can share one LatexRenderer. Each render() call
        creates an independent RenderContext.
    """

    __slots__ = ("_config", "_last_context")

    def __init__(self, config: LatexConfig | None = None) -> None:
        """Initialize renderer.

        Args:
            config: Render configuration; defaults to ``DEFAULT_CONFIG``
        """
        self._config = config or DEFAULT_CONFIG
        self._last_context: RenderContext | None = None

    @property
    def config(self) -> LatexConfig:
        return self._config

    def create_context(self) -> RenderContext:
        """Fresh per-render state."""
        return RenderContext(config=self._config)

    def render(self, node: Document) -> str:
        """Render a document to the final LaTeX artifact.

        Indexes link targets, walks the tree and assembles the zone buffers
        into the configured template. Rewrite passes are not applied here;
        ``texloom.render_document`` runs them first.

        Raises:
            RenderError: On a node kind without transcoder, or (through its
                subclasses) on links and coderefs that resolve to nothing.
        """
        ctx = self.create_context()
        ctx.references.index(node)
        body = self.render_node(node, ctx) or ""
        text = assemble_document(
            body,
            ctx.zone_buffers,
            self._config.template,
            config=self._config,
            properties=node.properties,
            on_warning=ctx.warn,
        )
        self._last_context = ctx
        return text

    def get_warnings(self) -> list[str]:
        """Warnings collected during the last render() call.

        Note:
            In multi-threaded scenarios, read this immediately after render()
            in the same thread.
        """
        if self._last_context is None:
            return []
        return self._last_context.warnings.copy()

    # =========================================================================
    # Traversal
    # =========================================================================

    def render_node(self, node: Node, ctx: RenderContext) -> str | None:
        """Render ``node`` post-order: children first, then its transcoder.

        Whatever precedes the children in the output is settled on the way
        in: a zone heading reserves its buffer slot, and titles, item tags
        and captions are rendered before the children so footnotes are
        numbered in output order.
        """
        if isinstance(node, Heading):
            zone = heading_zone(node)
            if zone is not Zone.BODY:
                ctx.reserve(zone, node)
        fields = self.render_fields(node, ctx)
        ctx.ancestors.append(node)
        contents = self.render_children(child_nodes(node), ctx)
        ctx.ancestors.pop()
        return self._transcode(node, contents, fields, ctx)

    def render_fields(self, node: Node, ctx: RenderContext) -> dict[str, str]:
        """Rendered secondary fields of ``node`` that its transcoder prints."""
        fields: dict[str, str] = {}
        for name in SECONDARY_FIELDS:
            value = getattr(node, name, None)
            if not value or (name == "caption" and not _prints_caption(node)):
                continue
            fields[name] = self.render_children(value, ctx).strip()
        return fields

    def render_children(self, children: Sequence[Node], ctx: RenderContext) -> str:
        """Concatenate the output of ``children`` with their post_blank spacing."""
        parts: list[str] = []
        for child in children:
            output = self.render_node(child, ctx)
            if output is None:
                continue
            parts.append(output)
            blank = getattr(child, "post_blank", 0)
            if blank:
                parts.append(("\n" if isinstance(child, BlockNode) else " ") * blank)
        return "".join(parts)

    def _transcode(
        self, node: Node, contents: str, fields: Mapping[str, str], ctx: RenderContext
    ) -> str | None:
        match node:
            case Document():
                return contents
            case Heading():
                return self._heading(node, contents, fields.get("title", ""), ctx)
            case Paragraph():
                return self._paragraph(node, contents, fields.get("caption", ""), ctx)
            case PlainList():
                return self._plain_list(node, contents)
            case Item():
                return self._item(node, contents, fields.get("tag"), ctx)
            case Table():
                return self._table(node, contents, fields.get("caption", ""), ctx)
            case TableRow():
                return self._table_row(node, contents, ctx)
            case TableCell():
                return self._table_cell(node, contents, ctx)
            case QuoteBlock():
                return f"\\begin{{quote}}\n{contents}\\end{{quote}}\n"
            case SpecialBlock():
                return self._special_block(node, contents, ctx)
            case CodeBlock():
                return self._code_block(node, fields.get("caption", ""), ctx)
            case ExampleBlock():
                example = node.value.rstrip("\n")
                return f"\\begin{{verbatim}}\n{example}\n\\end{{verbatim}}\n"
            case LatexEnvironment():
                return self._latex_environment(node, ctx)
            case RawBlock():
                if node.backend.lower() not in LATEX_BACKENDS:
                    return None
                return node.value.rstrip("\n") + "\n"
            case Keyword():
                return self._keyword(node)
            case HorizontalRule():
                width = node.attributes.get("width", "\\linewidth")
                thickness = node.attributes.get("thickness", "0.5pt")
                return f"\\noindent\\rule{{{width}}}{{{thickness}}}\n"
            case FootnoteDefinition():
                return None
            case Text():
                return self._text(node, ctx)
            case Bold():
                return _fill(self._config.text_markup["bold"], contents)
            case Italic():
                return _fill(self._config.text_markup["italic"], contents)
            case Underline():
                return _fill(self._config.text_markup["underline"], contents)
            case StrikeThrough():
                return _fill(self._config.text_markup["strike-through"], contents)
            case Code():
                return _fill(self._config.text_markup["code"], escape_texttt(node.value))
            case Verbatim():
                return _fill(self._config.text_markup["verbatim"], escape_texttt(node.value))
            case Link():
                return self._link(node, contents, ctx)
            case Image():
                return self._includegraphics(node.path, node.attributes)
            case FootnoteReference():
                return self._footnote_reference(node, contents, ctx)
            case Timestamp():
                kind = node.kind.removesuffix("-range")
                template = self._config.timestamp_formats.get(kind, "%s")
                return _fill(template, escape_text(node.value))
            case LatexFragment():
                return strip_math_delimiters(node.value) if ctx.in_math() else node.value
            case Entity():
                if node.latex_math and not ctx.in_math():
                    return f"\\({node.latex}\\)"
                return node.latex
            case Subscript():
                return f"_{{{contents}}}" if ctx.in_math() else f"\\textsubscript{{{contents}}}"
            case Superscript():
                return f"^{{{contents}}}" if ctx.in_math() else f"\\textsuperscript{{{contents}}}"
            case MathRun():
                return contents if ctx.in_math() else f"\\({contents}\\)"
            case LineBreak():
                return "\\\\\n"
            case Target():
                return f"\\label{{{ctx.references.get_label(node, force=True)}}}"
            case RadioTarget():
                return f"\\label{{{ctx.references.get_label(node, force=True)}}}{contents}"
            case ExportSnippet():
                return node.value if node.backend.lower() in LATEX_BACKENDS else None
            case _:
                raise RenderError(
                    f"No transcoder for node kind {type(node).__name__}",
                    getattr(node, "location", None),
                )

    # =========================================================================
    # Shared pieces
    # =========================================================================

    def _caption(
        self, node: BlockNode, caption: str, ctx: RenderContext, *, captionof: str | None = None
    ) -> str:
        """``\\caption{...}`` and ``\\label{...}`` lines for a block, if any.

        Outside a float, ``captionof`` names the float type for
        ``\\captionof``.
        """
        label = ctx.references.get_label(node)
        lines: list[str] = []
        if caption:
            command = f"\\captionof{{{captionof}}}" if captionof else "\\caption"
            lines.append(f"{command}{{{caption}}}")
        if label:
            lines.append(f"\\label{{{label}}}")
        return "\n".join(lines)

    def _includegraphics(self, path: str, attributes: Mapping[str, str]) -> str:
        path = path.removeprefix("file:")
        width = attributes.get("width")
        height = attributes.get("height")
        if width is None and height is None:
            width = self._config.image_default_width
        args = format_args([("width", width), ("height", height)], oneline=True)
        extra = attributes.get("options", "")
        joined = ",".join(part for part in (args, extra) if part)
        options = f"[{joined}]" if joined else ""
        if PurePosixPath(path).suffix.lower() == ".svg":
            return f"\\includesvg{options}{{{path}}}"
        return f"\\includegraphics{options}{{{path}}}"

    # =========================================================================
    # Blocks
    # =========================================================================

    def _heading(
        self, node: Heading, contents: str, title: str, ctx: RenderContext
    ) -> str | None:
        config = self._config
        label = ctx.references.get_label(node, force=True)

        if node.level > config.headline_levels or node.level > len(config.sectioning):
            environment = "enumerate" if config.section_numbers and not node.unnumbered else "itemize"
            text = (
                f"\\begin{{{environment}}}\n\\item {title}\\label{{{label}}}\n"
                f"{contents}\\end{{{environment}}}\n"
            )
        else:
            numbered, unnumbered = config.sectioning[node.level - 1]
            command = unnumbered if node.unnumbered or not config.section_numbers else numbered
            text = f"{_fill(command, title)}\n\\label{{{label}}}\n{contents}"

        zone = heading_zone(node)
        if zone is not Zone.BODY:
            logger.debug("Routing heading at %s to %s", node.location, zone.value)
            ctx.route(zone, text, node)
            return None
        return text

    def _paragraph(
        self, node: Paragraph, contents: str, caption: str, ctx: RenderContext
    ) -> str | None:
        if is_figure(node):
            return self._figure(node, contents, caption, ctx)
        text = contents.rstrip()
        return f"{text}\n" if text else None

    def _figure(self, node: Paragraph, contents: str, caption: str, ctx: RenderContext) -> str:
        config = self._config
        graphic = contents.strip()
        float_name = node.attributes.get("float", "figure")
        placement = node.attributes.get("placement", config.figure_placement)

        if float_name == "nil":
            lines = ["{\\centering", graphic]
            caption_lines = self._caption(node, caption, ctx, captionof="figure")
            if caption_lines:
                lines.append(caption_lines)
            return "\n".join(lines) + "\n\\par}\n"
        caption = self._caption(node, caption, ctx)
        if float_name == "wrap":
            width = node.attributes.get("width", "0.48\\textwidth")
            begin = f"\\begin{{wrapfigure}}{{r}}{{{width}}}"
            environment = "wrapfigure"
        else:
            environment = _FIGURE_FLOATS.get(float_name, "figure")
            begin = f"\\begin{{{environment}}}{placement}"

        lines = [begin, "\\centering"]
        if caption and config.figure_caption_above:
            lines.append(caption)
        lines.append(graphic)
        if caption and not config.figure_caption_above:
            lines.append(caption)
        lines.append(f"\\end{{{environment}}}")
        return "\n".join(lines) + "\n"

    def _plain_list(self, node: PlainList, contents: str) -> str:
        environment = node.attributes.get("environment", _LIST_ENVIRONMENTS[node.kind])
        options = node.attributes.get("options", "")
        return f"\\begin{{{environment}}}{options}\n{contents}\\end{{{environment}}}\n"

    def _item(self, node: Item, contents: str, tag: str | None, ctx: RenderContext) -> str:
        lines: list[str] = []
        parent = ctx.parent()

        if node.counter is not None and isinstance(parent, PlainList) and parent.kind == "ordered":
            depth = sum(
                1
                for ancestor in ctx.ancestors
                if isinstance(ancestor, PlainList) and ancestor.kind == "ordered"
            )
            counter = _ENUM_COUNTERS[min(depth, len(_ENUM_COUNTERS)) - 1]
            lines.append(f"\\setcounter{{{counter}}}{{{node.counter - 1}}}")

        bullet = _CHECKBOXES.get(node.checkbox) if node.checkbox else None
        marker = " ".join(part for part in (bullet, tag) if part)
        # Brace the tag so a "]" inside it cannot close the optional argument
        marker = f"[{{{marker}}}]" if tag else (f"[{marker}]" if marker else "")

        body = contents.strip()
        lines.append(f"\\item{marker} {body}" if body else f"\\item{marker}")
        return "\n".join(lines) + "\n"

    def _special_block(self, node: SpecialBlock, contents: str, ctx: RenderContext) -> str:
        environment = self._config.environments.get(node.block_type.lower(), node.block_type)
        options = node.attributes.get("options", "")
        label = ctx.references.get_label(node)
        label_line = f"\\label{{{label}}}\n" if label else ""
        return f"\\begin{{{environment}}}{options}\n{label_line}{contents}\\end{{{environment}}}\n"

    def _latex_environment(self, node: LatexEnvironment, ctx: RenderContext) -> str:
        value = node.value.rstrip("\n")
        name = environment_name(value)
        label = ctx.references.get_label(node)
        if not label:
            return value + "\n"
        # Starred and numberless math environments take no label inside
        if not is_numbered_math(name) and (not name or is_math_environment(name)):
            return f"\\label{{{label}}}\n{value}\n"
        first, newline, rest = value.partition("\n")
        if newline:
            return f"{first}\n\\label{{{label}}}\n{rest}\n"
        return f"{value}\n\\label{{{label}}}\n"

    def _keyword(self, node: Keyword) -> str | None:
        key = node.key.upper()
        if key in ("LATEX", "TEX"):
            return node.value.rstrip("\n") + "\n"
        if key != "TOC":
            return None
        try:
            return self._table_of_contents(node.value)
        except UnknownDirectiveError as exc:
            logger.debug("Ignoring keyword at %s: %s", node.location, exc)
            return None

    def _table_of_contents(self, value: str) -> str:
        """Render a ``TOC`` directive.

        Raises:
            UnknownDirectiveError: For anything but headlines, tables,
                listings or figures.
        """
        words = value.split()
        directive = words[0].lower() if words else ""
        match directive:
            case "headlines":
                depth = next((word for word in words[1:] if word.isdigit()), None)
                if depth is None:
                    return "\\tableofcontents\n"
                return f"\\setcounter{{tocdepth}}{{{depth}}}\n\\tableofcontents\n"
            case "tables":
                return "\\listoftables\n"
            case "figures":
                return "\\listoffigures\n"
            case "listings":
                if self._config.code_backend == "listings":
                    return "\\lstlistoflistings\n"
                return "\\listoflistings\n"
            case _:
                raise UnknownDirectiveError("TOC", value)

    # =========================================================================
    # Source code
    # =========================================================================

    def _code_block(self, node: CodeBlock, caption: str, ctx: RenderContext) -> str:
        references = ctx.references
        for label in node.references:
            if references.coderef_line(node, label) is None:
                raise CodeRefNotFoundError(label, node.location)

        config = self._config
        code = _strip_coderef_markers(node)
        first_line = references.first_line_number(node)
        language = ctx.translate_language(node.language) if node.language else None
        label = references.get_label(node)

        match config.code_backend:
            case "listings":
                options = format_args([
                    ("language", language),
                    ("label", label),
                    ("caption", caption),
                    ("numbers", "left" if first_line else None),
                    ("firstnumber", str(first_line) if first_line else None),
                    *config.listings_options,
                ])
                return (
                    f"\\lstset{{{options}}}\n"
                    f"\\begin{{lstlisting}}\n{code}\n\\end{{lstlisting}}\n"
                )
            case "minted":
                options = format_options([
                    ("linenos", "true" if first_line else None),
                    ("firstnumber", str(first_line) if first_line else None),
                    *config.minted_options,
                ])
                body = f"\\begin{{minted}}{options}{{{(language or 'text').lower()}}}\n{code}\n\\end{{minted}}\n"
                if not (caption or label):
                    return body
                return (
                    "\\begin{listing}[htbp]\n"
                    f"{body}{self._caption(node, caption, ctx)}\n"
                    "\\end{listing}\n"
                )
            case _:
                if first_line is not None:
                    code = _number_lines(code, first_line)
                body = f"\\begin{{verbatim}}\n{code}\n\\end{{verbatim}}\n"
                if not (caption or label):
                    return body
                return f"\\begin{{figure}}[H]\n{self._caption(node, caption, ctx)}\n{body}\\end{{figure}}\n"

    # =========================================================================
    # Tables
    # =========================================================================

    def _booktabs(self, table: Table) -> bool:
        flag = attribute_flag(table.attributes.get("booktabs"))
        return self._config.table_booktabs if flag is None else flag

    def _table(self, node: Table, contents: str, caption: str, ctx: RenderContext) -> str:
        config = self._config
        attributes = node.attributes
        geometry = ctx.geometry(node)
        environment = attributes.get("environment", config.table_environment)
        spec = column_spec(node, geometry)

        if environment in _WIDTH_ENVIRONMENTS:
            width = attributes.get("width", "\\linewidth")
            begin = f"\\begin{{{environment}}}{{{width}}}{{{spec}}}"
        else:
            begin = f"\\begin{{{environment}}}{{{spec}}}"

        if environment == "longtable":
            return self._longtable(node, begin, contents, caption, geometry, ctx)

        tabular = f"{begin}\n{contents}\\end{{{environment}}}"
        float_name = attributes.get("float", config.table_float)
        if not float_name or float_name == "nil":
            caption = self._caption(node, caption, ctx, captionof="table")
            if not caption:
                return tabular + "\n"
            parts = [caption, tabular] if config.table_caption_above else [tabular, caption]
            return "\n".join(parts) + "\n"

        float_environment = _TABLE_FLOATS.get(float_name, float_name)
        placement = attributes.get("placement", config.table_placement)
        caption = self._caption(node, caption, ctx)
        lines = [f"\\begin{{{float_environment}}}{placement}"]
        if config.table_centered:
            lines.append("\\centering")
        if caption and config.table_caption_above:
            lines.append(caption)
        lines.append(tabular)
        if caption and not config.table_caption_above:
            lines.append(caption)
        lines.append(f"\\end{{{float_environment}}}")
        return "\n".join(lines) + "\n"

    def _longtable(
        self,
        node: Table,
        begin: str,
        contents: str,
        caption: str,
        geometry: TableGeometry,
        ctx: RenderContext,
    ) -> str:
        config = self._config
        caption = self._caption(node, caption, ctx)
        head = f"{caption} \\\\\n" if caption else ""

        footer_rows = ctx.longtable_footers.pop(id(node), [])
        foot = ""
        if geometry.footer is not None and config.table_footer_content:
            foot += (
                f"\\multicolumn{{{geometry.column_count}}}{{r}}"
                f"{{{config.table_footer_content}}} \\\\\n\\endfoot\n"
            )
        if footer_rows:
            foot += "".join(footer_rows) + "\\endlastfoot\n"

        marker = "\\endhead\n"
        if marker in contents:
            before, _, after = contents.partition(marker)
            body = f"{before}{marker}{foot}{after}"
        else:
            body = foot + contents
        return f"{begin}\n{head}{body}\\end{{longtable}}\n"

    def _table_row(self, node: TableRow, contents: str, ctx: RenderContext) -> str | None:
        table = ctx.enclosing_table()
        if table is None:
            raise RenderError("Table row outside of a table", node.location)
        geometry = ctx.geometry(table)
        index = geometry.index_of(node)
        if index is None:
            return None

        before, after = geometry.rules(index, self._booktabs(table))
        style = self._config.table_row_styles.get(geometry.row_role(index).value, "")
        padding = " &" * (geometry.column_count - len(node.children))

        lines: list[str] = []
        if before:
            lines.append(before)
        if index == geometry.body_start:
            sizing = geometry.sizing_row()
            if sizing:
                lines.append(sizing)
        lines.append(f"{style}{contents}{padding} \\\\")
        if after:
            lines.append(after)

        longtable = table.attributes.get("environment", self._config.table_environment) == "longtable"
        if longtable and geometry.header is not None and index == geometry.header[1]:
            lines.append("\\endhead")
        text = "\n".join(lines) + "\n"

        if longtable and geometry.part(index) == "foot":
            ctx.longtable_footers.setdefault(id(table), []).append(text)
            return None
        return text

    def _table_cell(self, node: TableCell, contents: str, ctx: RenderContext) -> str | None:
        row = ctx.parent()
        table = ctx.enclosing_table()
        if not isinstance(row, TableRow) or table is None:
            raise RenderError("Table cell outside of a table row", node.location)
        geometry = ctx.geometry(table)
        index = geometry.index_of(row)
        if index is None:
            return None

        column = next(i for i, cell in enumerate(row.children) if cell is node)
        footer = table.attributes.get("footer")
        footer_style = footer if footer and "%s" in footer else None
        text = _fill(cell_style(geometry, index, column, self._config, footer_style), contents.strip())
        return text if column == 0 else f" & {text}"

    # =========================================================================
    # Inlines
    # =========================================================================

    def _text(self, node: Text, ctx: RenderContext) -> str:
        if ctx.in_math():
            return node.content
        text = escape_text(node.content)
        if not self._config.smart_quotes:
            return text
        try:
            delimiters = delimiters_for(self._config.language, self._config.quotes)
            return smart_quotes(text, delimiters)
        except QuoteMismatchError as exc:
            ctx.warn(f"{node.location}: {exc}; quotes left unprocessed")
            return text

    def _link(self, node: Link, contents: str, ctx: RenderContext) -> str:
        description = contents.strip()
        references = ctx.references
        match node.kind:
            case "coderef":
                line = references.resolve_coderef(node.path, node.location)
                return description or str(line)
            case "fuzzy" | "custom-id" | "id" | "radio":
                target = references.resolve_link(node)
                label = references.get_label(target, force=True)
                if description:
                    return f"\\hyperref[{label}]{{{description}}}"
                if isinstance(target, LatexEnvironment) and is_numbered_math(
                    environment_name(target.value)
                ):
                    return f"\\eqref{{{label}}}"
                return f"\\ref{{{label}}}"
            case "file" if is_image_link(node):
                parent = ctx.parent()
                attributes = parent.attributes if isinstance(parent, Paragraph) else {}
                return self._includegraphics(node.path, attributes)
            case _:
                uri = node.path
                if node.kind != "file" and not uri.startswith(f"{node.kind}:"):
                    uri = f"{node.kind}:{uri}"
                uri = escape_url(uri)
                if description:
                    return f"\\href{{{uri}}}{{{description}}}"
                return f"\\url{{{uri}}}"

    def _footnote_reference(
        self, node: FootnoteReference, contents: str, ctx: RenderContext
    ) -> str:
        if node.label is None:
            ctx.next_footnote(f"anonymous:{ctx.references.get_reference(node)}")
            return f"\\footnote{{{contents.strip()}}}"

        number, first = ctx.next_footnote(node.label)
        if not first:
            return f"\\footnotemark[{number}]"
        if node.children:
            text = contents.strip()
        else:
            definition = ctx.references.footnote_definition(node.label, node.location)
            text = self.render_children(definition.children, ctx).strip()
        return f"\\footnote{{{text}}}"


# =============================================================================
# Code helpers
# =============================================================================


def _coderef_pattern(label_format: str) -> re.Pattern[str]:
    """Regex for a coderef marker at the end of a line, label in group 1."""
    prefix, _, suffix = label_format.partition("%s")
    return re.compile(rf"[ \t]*{re.escape(prefix)}([-\w ]+?){re.escape(suffix)}[ \t]*$")


def _strip_coderef_markers(block: CodeBlock) -> str:
    """Code of ``block`` without its coderef markers.

    With ``retain_labels`` each marker is replaced by ``(label)`` instead.
    """
    pattern = _coderef_pattern(block.label_format)
    lines = []
    for line in block.value.rstrip("\n").split("\n"):
        if block.retain_labels:
            line = pattern.sub(lambda m: f" ({m.group(1)})", line)
        else:
            line = pattern.sub("", line)
        lines.append(line)
    return "\n".join(lines)


def _number_lines(code: str, first_line: int) -> str:
    """Prefix each line with its number, right-aligned."""
    lines = code.split("\n")
    width = len(str(first_line + len(lines) - 1))
    return "\n".join(
        f"{number:>{width}}  {line}" for number, line in enumerate(lines, start=first_line)
    )
