"""Tests for the LaTeX renderer: one transcoder at a time, then whole documents."""

from dataclasses import dataclass

import pytest

from texloom import RenderResult, render_document
from texloom.config import LatexConfig
from texloom.errors import CodeRefNotFoundError, ReferenceNotFoundError, RenderError
from texloom.location import SourceLocation
from texloom.nodes import (
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
    InlineNode,
    Italic,
    Item,
    Keyword,
    LatexEnvironment,
    LatexFragment,
    LineBreak,
    Link,
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
from texloom.renderers import LatexRenderer, TreeRenderer

LOC = SourceLocation(lineno=1, col_offset=1)


def _text(content: str, post_blank: int = 0) -> Text:
    return Text(location=LOC, content=content, post_blank=post_blank)


def _para(*inlines, **kwargs) -> Paragraph:  # type: ignore[no-untyped-def]
    return Paragraph(location=LOC, children=tuple(inlines), **kwargs)


def _heading(title: str, level: int = 1, *children, **kwargs) -> Heading:  # type: ignore[no-untyped-def]
    return Heading(location=LOC, level=level, title=(_text(title),), children=tuple(children), **kwargs)


def _doc(*blocks) -> Document:  # type: ignore[no-untyped-def]
    return Document(location=LOC, children=tuple(blocks))


def _render(*blocks, config: LatexConfig | None = None) -> str:  # type: ignore[no-untyped-def]
    return render_document(_doc(*blocks), config).text


def _cell(text: str) -> TableCell:
    return TableCell(location=LOC, children=(_text(text),))


def _row(*texts: str) -> TableRow:
    return TableRow(location=LOC, children=tuple(_cell(t) for t in texts))


def _rule() -> TableRow:
    return TableRow(location=LOC, children=(), kind="rule")


def _table(*rows: TableRow, name: str | None = None, caption=None, **attributes: str) -> Table:  # type: ignore[no-untyped-def]
    return Table(
        location=LOC, children=tuple(rows), name=name, caption=caption, attributes=attributes
    )


# =============================================================================
# Dispatch
# =============================================================================


@dataclass(frozen=True, slots=True)
class Mystery(InlineNode):
    """Node kind the renderer has never heard of."""

    value: str = ""


class TestDispatch:
    def test_missing_transcoder_is_fatal(self) -> None:
        with pytest.raises(RenderError, match="Mystery"):
            _render(_para(Mystery(location=LOC)))

    def test_render_result(self) -> None:
        result = render_document(_doc(_para(_text("hi"))))
        assert isinstance(result, RenderResult)
        assert result.text == "hi\n"
        assert result.warnings == ()

    def test_empty_document(self) -> None:
        assert _render() == ""

    def test_block_post_blank(self) -> None:
        first = Paragraph(location=LOC, children=(_text("a"),), post_blank=1)
        assert _render(first, _para(_text("b"))) == "a\n\nb\n"

    def test_inline_post_blank(self) -> None:
        assert _render(_para(Bold(location=LOC, children=(_text("a"),), post_blank=2), _text("b"))) == (
            "\\textbf{a}  b\n"
        )

    def test_nothing_output_drops_spacing(self) -> None:
        snippet = ExportSnippet(location=LOC, backend="html", value="<b>", post_blank=1)
        assert _render(_para(snippet, _text("x"))) == "x\n"

    def test_renderer_reusable(self) -> None:
        renderer = LatexRenderer()
        doc = _doc(_heading("A"))
        assert renderer.render(doc) == renderer.render(doc)

    def test_satisfies_renderer_protocol(self) -> None:
        renderer: TreeRenderer = LatexRenderer()
        assert renderer.render(_doc()) == ""
        assert renderer.get_warnings() == []

    def test_input_tree_untouched(self) -> None:
        doc = _doc(_para(LatexFragment(location=LOC, value="$x$")))
        render_document(doc)
        assert doc == _doc(_para(LatexFragment(location=LOC, value="$x$")))


# =============================================================================
# Blocks
# =============================================================================


class TestHeadings:
    def test_section(self) -> None:
        assert _render(_heading("Intro", 1, _para(_text("Text")))) == (
            "\\section{Intro}\n\\label{sec:ref1}\nText\n"
        )

    def test_subsection_custom_id(self) -> None:
        assert _render(_heading("Use", 2, custom_id="usage")) == (
            "\\subsection{Use}\n\\label{sec:usage}\n"
        )

    def test_unnumbered(self) -> None:
        assert _render(_heading("Notes", unnumbered=True)).startswith("\\section*{Notes}")

    def test_section_numbers_off(self) -> None:
        config = LatexConfig(section_numbers=False)
        assert _render(_heading("Notes"), config=config).startswith("\\section*{Notes}")

    def test_deep_heading_becomes_list_item(self) -> None:
        assert _render(_heading("Deep", 4)) == (
            "\\begin{enumerate}\n\\item Deep\\label{sec:ref1}\n\\end{enumerate}\n"
        )

    def test_headline_levels(self) -> None:
        config = LatexConfig(headline_levels=1)
        assert _render(_heading("Two", 2), config=config).startswith("\\begin{enumerate}")

    def test_title_escaped(self) -> None:
        assert _render(_heading("R&D")).startswith("\\section{R\\&D}")


class TestParagraphsAndBlocks:
    def test_escaped_text(self) -> None:
        assert _render(_para(_text("Hello & world"))) == "Hello \\& world\n"

    def test_quote(self) -> None:
        quote = QuoteBlock(location=LOC, children=(_para(_text("q")),))
        assert _render(quote) == "\\begin{quote}\nq\n\\end{quote}\n"

    def test_special_block_mapped(self) -> None:
        block = SpecialBlock(location=LOC, block_type="abstract", children=(_para(_text("a")),))
        assert _render(block) == "\\begin{abstract}\na\n\\end{abstract}\n"

    def test_special_block_fallback(self) -> None:
        block = SpecialBlock(location=LOC, block_type="theorem", children=(_para(_text("t")),))
        assert _render(block) == "\\begin{theorem}\nt\n\\end{theorem}\n"

    def test_special_block_environment_config(self) -> None:
        config = LatexConfig(environments={"note": "tcolorbox"})
        block = SpecialBlock(location=LOC, block_type="NOTE", children=())
        assert _render(block, config=config) == "\\begin{tcolorbox}\n\\end{tcolorbox}\n"

    def test_example(self) -> None:
        example = ExampleBlock(location=LOC, value="a & b\n")
        assert _render(example) == "\\begin{verbatim}\na & b\n\\end{verbatim}\n"

    def test_horizontal_rule(self) -> None:
        assert _render(HorizontalRule(location=LOC)) == "\\noindent\\rule{\\linewidth}{0.5pt}\n"

    def test_raw_block_latex(self) -> None:
        assert _render(RawBlock(location=LOC, backend="latex", value="\\clearpage")) == "\\clearpage\n"

    def test_raw_block_other_backend(self) -> None:
        assert _render(RawBlock(location=LOC, backend="html", value="<hr>")) == ""

    def test_export_snippet(self) -> None:
        snippet = ExportSnippet(location=LOC, backend="latex", value="\\newline")
        assert _render(_para(_text("a", 1), snippet)) == "a \\newline\n"


class TestLatexEnvironments:
    def test_numbered_math_labelled(self) -> None:
        env = LatexEnvironment(
            location=LOC, value="\\begin{equation}\nE=mc^2\n\\end{equation}\n", name="energy"
        )
        assert _render(env) == "\\begin{equation}\n\\label{eq:energy}\nE=mc^2\n\\end{equation}\n"

    def test_starred_math_labelled_before_environment(self) -> None:
        value = "\\begin{equation*}\nx\n\\end{equation*}"
        env = LatexEnvironment(location=LOC, value=value, name="x")
        link = Link(location=LOC, kind="fuzzy", path="x")
        assert _render(env, _para(link)) == f"\\label{{eq:x}}\n{value}\n\\ref{{eq:x}}\n"

    def test_unnamed_untouched(self) -> None:
        value = "\\begin{align}\na &= b\n\\end{align}"
        assert _render(LatexEnvironment(location=LOC, value=value)) == value + "\n"


class TestKeywords:
    def _keyword(self, key: str, value: str) -> Keyword:
        return Keyword(location=LOC, key=key, value=value)

    def test_toc_headlines(self) -> None:
        assert _render(self._keyword("TOC", "headlines 2")) == (
            "\\setcounter{tocdepth}{2}\n\\tableofcontents\n"
        )

    def test_toc_headlines_without_depth(self) -> None:
        assert _render(self._keyword("toc", "headlines")) == "\\tableofcontents\n"

    def test_toc_tables(self) -> None:
        assert _render(self._keyword("TOC", "tables")) == "\\listoftables\n"

    def test_toc_listings(self) -> None:
        config = LatexConfig(code_backend="listings")
        assert _render(self._keyword("TOC", "listings"), config=config) == "\\lstlistoflistings\n"

    def test_unknown_directive_renders_nothing(self) -> None:
        result = render_document(_doc(self._keyword("TOC", "bogus")))
        assert result.text == ""
        assert result.warnings == ()

    def test_latex_keyword(self) -> None:
        assert _render(self._keyword("LATEX", "\\clearpage")) == "\\clearpage\n"

    def test_other_keyword(self) -> None:
        assert _render(self._keyword("AUTHOR", "Ann")) == ""


class TestLists:
    def _item(self, text: str, **kwargs) -> Item:  # type: ignore[no-untyped-def]
        return Item(location=LOC, children=(_para(_text(text)),), **kwargs)

    def test_unordered_with_checkbox(self) -> None:
        plain = PlainList(location=LOC, children=(self._item("one"), self._item("done", checkbox="on")))
        assert _render(plain) == (
            "\\begin{itemize}\n\\item one\n\\item[$\\boxtimes$] done\n\\end{itemize}\n"
        )

    def test_descriptive(self) -> None:
        item = self._item("def", tag=(_text("Term"),))
        plain = PlainList(location=LOC, children=(item,), kind="descriptive")
        assert _render(plain) == "\\begin{description}\n\\item[{Term}] def\n\\end{description}\n"

    def test_ordered_counter(self) -> None:
        plain = PlainList(location=LOC, children=(self._item("x", counter=3),), kind="ordered")
        assert _render(plain) == (
            "\\begin{enumerate}\n\\setcounter{enumi}{2}\n\\item x\n\\end{enumerate}\n"
        )

    def test_nested_counter(self) -> None:
        inner = PlainList(location=LOC, children=(self._item("y", counter=5),), kind="ordered")
        outer_item = Item(location=LOC, children=(_para(_text("x")), inner))
        outer = PlainList(location=LOC, children=(outer_item,), kind="ordered")
        assert "\\setcounter{enumii}{4}" in _render(outer)


# =============================================================================
# Code
# =============================================================================


class TestCodeBlocks:
    def _code(self, value: str, **kwargs) -> CodeBlock:  # type: ignore[no-untyped-def]
        return CodeBlock(location=LOC, value=value, **kwargs)

    def test_verbatim(self) -> None:
        assert _render(self._code("print(1)\n", language="python")) == (
            "\\begin{verbatim}\nprint(1)\n\\end{verbatim}\n"
        )

    def test_listings(self) -> None:
        config = LatexConfig(code_backend="listings")
        assert _render(self._code("print(1)\n", language="python"), config=config) == (
            "\\lstset{language={Python}}\n\\begin{lstlisting}\nprint(1)\n\\end{lstlisting}\n"
        )

    def test_listings_options_appended(self) -> None:
        config = LatexConfig(code_backend="listings", listings_options=(("frame", "single"),))
        output = _render(self._code("x", language="c"), config=config)
        assert output.startswith("\\lstset{language={C},\n   frame={single}}")

    def test_minted(self) -> None:
        config = LatexConfig(code_backend="minted")
        assert _render(self._code("x\n", language="Python"), config=config) == (
            "\\begin{minted}{python}\nx\n\\end{minted}\n"
        )

    def test_unknown_language_passes_through(self) -> None:
        config = LatexConfig(code_backend="listings")
        assert "language={zig}" in _render(self._code("x", language="zig"), config=config)

    def test_coderef_markers_stripped(self) -> None:
        block = self._code("x = 1  (ref:init)\ny = 2", references=("init",))
        link = Link(location=LOC, kind="coderef", path="init")
        assert _render(block, _para(_text("line ", 0), link)) == (
            "\\begin{verbatim}\nx = 1\ny = 2\n\\end{verbatim}\nline 1\n"
        )

    def test_coderef_labels_retained(self) -> None:
        block = self._code("x = 1  (ref:init)", retain_labels=True)
        assert "x = 1 (init)" in _render(block)

    def test_numbered_lines(self) -> None:
        block = self._code("a\nb", number_lines="new", number_offset=9)
        assert "10  a\n11  b" in _render(block)

    def test_missing_declared_coderef_is_fatal(self) -> None:
        """A declared coderef absent from the block's own code aborts the render."""
        block = self._code("x = 1\n", references=("missing",))
        with pytest.raises(CodeRefNotFoundError, match="missing"):
            render_document(_doc(block))

    def test_link_to_missing_coderef_is_fatal(self) -> None:
        link = Link(location=LOC, kind="coderef", path="nope")
        with pytest.raises(CodeRefNotFoundError):
            _render(self._code("x"), _para(link))

    def test_captioned_listing(self) -> None:
        config = LatexConfig(code_backend="listings")
        block = self._code("x", caption=(_text("Example"),), name="ex")
        assert _render(block, config=config).startswith(
            "\\lstset{label={ex},\n   caption={Example}}"
        )


# =============================================================================
# Tables
# =============================================================================


class TestTables:
    def test_header_single_group(self) -> None:
        """3x2 table with one row group: first row is the header, no footer."""
        table = _table(_row("A", "B"), _row("1", "2"), _row("3", "4"))
        output = _render(table, config=LatexConfig(table_header=True))
        assert output == (
            "\\begin{table}\n"
            "\\centering\n"
            "\\begin{tabular}{rr}\n"
            "\\toprule\n"
            "A & B \\\\\n"
            "\\midrule\n"
            "1 & 2 \\\\\n"
            "3 & 4 \\\\\n"
            "\\bottomrule\n"
            "\\end{tabular}\n"
            "\\end{table}\n"
        )
        assert "endfoot" not in output

    def test_no_booktabs(self) -> None:
        table = _table(_row("a"), _row("b"), booktabs="nil")
        output = _render(table)
        assert "\\hline\na \\\\\nb \\\\\n\\hline\n" in output

    def test_caption_above(self) -> None:
        table = _table(_row("a"), caption=(_text("Results"),))
        output = _render(table)
        assert "\\centering\n\\caption{Results}\n\\label{tab:ref1}\n\\begin{tabular}" in output

    def test_caption_below(self) -> None:
        table = _table(_row("a"), name="t1", caption=(_text("R"),))
        output = _render(table, config=LatexConfig(table_caption_above=False))
        assert "\\end{tabular}\n\\caption{R}\n\\label{tab:t1}\n\\end{table}" in output

    def test_no_float(self) -> None:
        table = _table(_row("a"), float="nil")
        assert _render(table) == "\\begin{tabular}{l}\n\\toprule\na \\\\\n\\bottomrule\n\\end{tabular}\n"

    def test_no_float_keeps_caption_and_label(self) -> None:
        table = _table(_row("a"), name="plain", caption=(_text("Plain"),), float="nil")
        link = Link(location=LOC, kind="fuzzy", path="plain")
        assert _render(table, _para(link)) == (
            "\\captionof{table}{Plain}\n"
            "\\label{tab:plain}\n"
            "\\begin{tabular}{l}\n\\toprule\na \\\\\n\\bottomrule\n\\end{tabular}\n"
            "\\ref{tab:plain}\n"
        )

    def test_no_float_named_table_labelled(self) -> None:
        table = _table(_row("a"), name="plain", float="nil")
        assert _render(table).startswith("\\label{tab:plain}\n\\begin{tabular}{l}\n")

    def test_short_rows_padded(self) -> None:
        table = _table(_row("a", "b"), _row("c"), float="nil")
        assert "c & \\\\" in _render(table)

    def test_rule_rows_render_nothing(self) -> None:
        table = _table(_row("a"), _rule(), _row("b"), float="nil")
        assert _render(table) == (
            "\\begin{tabular}{l}\n\\toprule\na \\\\\n\\midrule\nb \\\\\n\\bottomrule\n\\end{tabular}\n"
        )

    def test_tabularx_width(self) -> None:
        table = _table(_row("a"), environment="tabularx", float="nil")
        assert _render(table).startswith("\\begin{tabularx}{\\linewidth}{l}")

    def test_cell_and_row_styles(self) -> None:
        config = LatexConfig(
            table_cell_styles={"corner": "\\textbf{%s}"},
            table_row_styles={"first": "\\rowcolor{gray} "},
        )
        table = _table(_row("a", "b"), _row("c", "d"), _row("e", "f"), float="nil")
        output = _render(table, config=config)
        assert "\\rowcolor{gray} \\textbf{a} & \\textbf{b} \\\\" in output
        assert "\\textbf{e} & \\textbf{f} \\\\" in output

    def test_footer_style(self) -> None:
        rows = (_row("h"), _rule(), _row("b"), _rule(), _row("f"))
        table = _table(*rows, footer="\\textit{%s}", float="nil")
        assert "\\textit{f} \\\\" in _render(table)

    def test_sizing_row(self) -> None:
        """Width cookies of the first row size the columns after the header."""
        sized = TableRow(location=LOC, children=(TableCell(location=LOC, children=(_text("H"),), width=5),))
        table = _table(sized, _row("a"), float="nil")
        output = _render(table, config=LatexConfig(table_header=True))
        assert "\\midrule\n\\rule{5em}{0pt} \\\\[-\\normalbaselineskip]\na \\\\\n" in output

    def test_longtable_footer_moved_to_head(self) -> None:
        rows = (_row("H"), _rule(), _row("a"), _row("b"), _rule(), _row("F"))
        table = _table(*rows, environment="longtable", footer="")
        output = _render(table, config=LatexConfig(table_header=True))
        assert output == (
            "\\begin{longtable}{l}\n"
            "\\toprule\n"
            "H \\\\\n"
            "\\endhead\n"
            "\\midrule\n"
            "F \\\\\n"
            "\\bottomrule\n"
            "\\endlastfoot\n"
            "\\midrule\n"
            "a \\\\\n"
            "b \\\\\n"
            "\\end{longtable}\n"
        )

    def test_longtable_continuation_footer(self) -> None:
        rows = (_row("H"), _rule(), _row("a"), _rule(), _row("F"))
        table = _table(*rows, environment="longtable")
        config = LatexConfig(table_header=True, table_footer_content="continued")
        output = _render(table, config=config)
        assert "\\multicolumn{1}{r}{continued} \\\\\n\\endfoot\n" in output
        assert output.index("\\endfoot") < output.index("\\endlastfoot")


# =============================================================================
# Inlines
# =============================================================================


class TestMarkup:
    @pytest.mark.parametrize(
        ("cls", "expected"),
        [
            (Bold, "\\textbf{x}"),
            (Italic, "\\emph{x}"),
            (Underline, "\\uline{x}"),
            (StrikeThrough, "\\sout{x}"),
        ],
    )
    def test_containers(self, cls: type, expected: str) -> None:
        assert _render(_para(cls(location=LOC, children=(_text("x"),)))) == expected + "\n"

    def test_code_escaped(self) -> None:
        assert _render(_para(Code(location=LOC, value="a_b"))) == "\\texttt{a\\_b}\n"

    def test_verbatim(self) -> None:
        assert _render(_para(Verbatim(location=LOC, value="50%"))) == "\\texttt{50\\%}\n"

    def test_custom_markup(self) -> None:
        config = LatexConfig(text_markup={**LatexConfig().text_markup, "bold": "\\textsc{%s}"})
        assert _render(_para(Bold(location=LOC, children=(_text("x"),))), config=config) == "\\textsc{x}\n"

    def test_timestamp(self) -> None:
        stamp = Timestamp(location=LOC, value="<2024-05-01 Wed>")
        assert _render(_para(stamp)) == "\\textit{<2024-05-01 Wed>}\n"

    def test_line_break(self) -> None:
        assert _render(_para(_text("a"), LineBreak(location=LOC), _text("b"))) == "a\\\\\nb\n"


class TestMath:
    def test_fragment_and_subscript_merge(self) -> None:
        frag = LatexFragment(location=LOC, value="$a$")
        sub = Subscript(location=LOC, children=(_text("i"),))
        assert _render(_para(frag, sub, _text(" text"))) == "\\(a_{i}\\) text\n"

    def test_math_entity(self) -> None:
        alpha = Entity(location=LOC, name="alpha", latex="\\alpha", latex_math=True, post_blank=1)
        assert _render(_para(alpha, _text("is"))) == "\\(\\alpha\\) is\n"

    def test_text_entity(self) -> None:
        entity = Entity(location=LOC, name="copy", latex="\\textcopyright{}")
        assert _render(_para(entity)) == "\\textcopyright{}\n"

    def test_text_subscript(self) -> None:
        sub = Subscript(location=LOC, children=(_text("2"),))
        assert _render(_para(_text("H"), sub, _text("O"))) == "H\\textsubscript{2}O\n"

    def test_text_superscript(self) -> None:
        sup = Superscript(location=LOC, children=(_text("th"),))
        assert _render(_para(_text("5"), sup)) == "5\\textsuperscript{th}\n"

    def test_display_fragment_raw(self) -> None:
        assert _render(_para(LatexFragment(location=LOC, value="\\[x\\]"))) == "\\[x\\]\n"

    def test_adjacent_fragments_one_math_mode(self) -> None:
        first = LatexFragment(location=LOC, value="$a$")
        second = LatexFragment(location=LOC, value="\\(+b\\)")
        assert _render(_para(first, second)) == "\\(a+b\\)\n"


class TestLinks:
    def test_target_and_fuzzy_link(self) -> None:
        target = Target(location=LOC, value="here")
        link = Link(location=LOC, kind="fuzzy", path="here")
        assert _render(_para(target, _text("Point")), _para(link)) == "\\label{ref1}Point\n\\ref{ref1}\n"

    def test_link_before_heading(self) -> None:
        link = Link(location=LOC, kind="fuzzy", path="*Later")
        output = _render(_para(link), _heading("Later"))
        assert output == "\\ref{sec:ref1}\n\\section{Later}\n\\label{sec:ref1}\n"

    def test_described_custom_id_link(self) -> None:
        link = Link(location=LOC, kind="custom-id", path="#intro", children=(_text("the intro"),))
        output = _render(_heading("Intro", custom_id="intro"), _para(link))
        assert "\\hyperref[sec:intro]{the intro}" in output

    def test_equation_reference(self) -> None:
        env = LatexEnvironment(location=LOC, value="\\begin{equation}\nx\n\\end{equation}", name="energy")
        link = Link(location=LOC, kind="fuzzy", path="energy")
        assert "\\eqref{eq:energy}" in _render(env, _para(link))

    def test_table_reference(self) -> None:
        table = _table(_row("a"), name="results")
        link = Link(location=LOC, kind="fuzzy", path="results")
        assert "see \\ref{tab:results}" in _render(table, _para(_text("see ", 0), link))

    def test_radio_link(self) -> None:
        radio = RadioTarget(location=LOC, value="Loom", children=(_text("Loom"),))
        link = Link(location=LOC, kind="radio", path="Loom", children=(_text("Loom"),))
        output = _render(_para(radio), _para(link))
        assert output == "\\label{ref1}Loom\n\\hyperref[ref1]{Loom}\n"

    def test_unresolved_link_is_fatal(self) -> None:
        link = Link(location=LOC, kind="fuzzy", path="nowhere")
        with pytest.raises(ReferenceNotFoundError, match="nowhere"):
            render_document(_doc(_para(link)))

    def test_external_url(self) -> None:
        link = Link(location=LOC, kind="https", path="https://example.org/a%20b")
        assert _render(_para(link)) == "\\url{https://example.org/a\\%20b}\n"

    def test_external_with_description(self) -> None:
        link = Link(location=LOC, kind="https", path="https://example.org", children=(_text("Ex & co"),))
        assert _render(_para(link)) == "\\href{https://example.org}{Ex \\& co}\n"

    def test_scheme_added(self) -> None:
        link = Link(location=LOC, kind="mailto", path="ann@example.org")
        assert _render(_para(link)) == "\\url{mailto:ann@example.org}\n"

    def test_image_link(self) -> None:
        link = Link(location=LOC, kind="file", path="plot.pdf")
        assert _render(_para(link)) == "\\includegraphics[width={.9\\linewidth}]{plot.pdf}\n"


class TestImagesAndFigures:
    def test_inline_image_options(self) -> None:
        image = Image(location=LOC, path="a.png", attributes={"height": "2cm", "options": "angle=90"})
        assert _render(_para(image)) == "\\includegraphics[height={2cm},angle=90]{a.png}\n"

    def test_svg(self) -> None:
        assert _render(_para(Image(location=LOC, path="a.svg"))).startswith("\\includesvg[")

    def test_figure(self) -> None:
        figure = _para(Image(location=LOC, path="cat.png"), caption=(_text("A cat"),))
        assert _render(figure) == (
            "\\begin{figure}[htbp]\n"
            "\\centering\n"
            "\\includegraphics[width={.9\\linewidth}]{cat.png}\n"
            "\\caption{A cat}\n"
            "\\label{fig:ref1}\n"
            "\\end{figure}\n"
        )

    def test_named_figure_reference(self) -> None:
        figure = _para(Image(location=LOC, path="cat.png"), caption=(_text("A cat"),), name="cat")
        link = Link(location=LOC, kind="fuzzy", path="cat")
        output = _render(figure, _para(link))
        assert "\\label{fig:cat}" in output
        assert output.endswith("\\ref{fig:cat}\n")

    def test_unfloated_figure_keeps_caption_and_label(self) -> None:
        figure = _para(
            Image(location=LOC, path="cat.png"),
            caption=(_text("A cat"),),
            name="cat",
            attributes={"float": "nil"},
        )
        link = Link(location=LOC, kind="fuzzy", path="cat")
        assert _render(figure, _para(link)) == (
            "{\\centering\n"
            "\\includegraphics[width={.9\\linewidth}]{cat.png}\n"
            "\\captionof{figure}{A cat}\n"
            "\\label{fig:cat}\n"
            "\\par}\n"
            "\\ref{fig:cat}\n"
        )

    def test_figure_attributes(self) -> None:
        figure = _para(
            Link(location=LOC, kind="file", path="w.png"),
            caption=(_text("Wide"),),
            attributes={"float": "multicolumn", "width": "\\textwidth"},
        )
        output = _render(figure)
        assert output.startswith("\\begin{figure*}[htbp]")
        assert "\\includegraphics[width={\\textwidth}]{w.png}" in output


class TestFootnotes:
    def test_first_use_then_mark(self) -> None:
        definition = FootnoteDefinition(location=LOC, label="1", children=(_para(_text("Note")),))
        ref = FootnoteReference(location=LOC, label="1")
        para = _para(_text("A"), ref, _text(" B"), FootnoteReference(location=LOC, label="1"))
        assert _render(para, definition) == "A\\footnote{Note} B\\footnotemark[1]\n"

    def test_numbering_by_first_use(self) -> None:
        defs = [
            FootnoteDefinition(location=LOC, label=label, children=(_para(_text(label)),))
            for label in ("x", "y")
        ]
        refs = [FootnoteReference(location=LOC, label=label) for label in ("y", "x", "y")]
        assert _render(_para(*refs), *defs) == "\\footnote{y}\\footnote{x}\\footnotemark[1]\n"

    def test_title_footnote_numbered_before_body(self) -> None:
        heading = Heading(
            location=LOC,
            level=1,
            title=(_text("T"), FootnoteReference(location=LOC, label="x")),
            children=(_para(FootnoteReference(location=LOC, label="y")),),
        )
        again = _para(FootnoteReference(location=LOC, label="x"))
        assert _render(heading, again, *self._definitions("x", "y")) == (
            "\\section{T\\footnote{X}}\n\\label{sec:ref1}\n\\footnote{Y}\n\\footnotemark[1]\n"
        )

    def test_item_tag_footnote_numbered_before_item_body(self) -> None:
        item = Item(
            location=LOC,
            tag=(FootnoteReference(location=LOC, label="x"),),
            children=(_para(FootnoteReference(location=LOC, label="y")),),
        )
        items = PlainList(location=LOC, kind="descriptive", children=(item,))
        again = _para(FootnoteReference(location=LOC, label="x"))
        output = _render(items, again, *self._definitions("x", "y"))
        assert output.endswith("\\footnotemark[1]\n")

    def _definitions(self, *labels: str) -> list[FootnoteDefinition]:
        return [
            FootnoteDefinition(location=LOC, label=label, children=(_para(_text(label.upper())),))
            for label in labels
        ]

    def test_inline_definition(self) -> None:
        ref = FootnoteReference(location=LOC, label=None, children=(_text("inline"),))
        assert _render(_para(_text("a"), ref)) == "a\\footnote{inline}\n"

    def test_undefined_is_fatal(self) -> None:
        with pytest.raises(ReferenceNotFoundError):
            _render(_para(FootnoteReference(location=LOC, label="nope")))


class TestSmartQuotes:
    def test_enabled(self) -> None:
        config = LatexConfig(smart_quotes=True)
        assert _render(_para(_text('He said "hi"')), config=config) == "He said ``hi''\n"

    def test_disabled_by_default(self) -> None:
        assert _render(_para(_text('"hi"'))) == '"hi"\n'

    def test_language(self) -> None:
        config = LatexConfig(smart_quotes=True, language="de")
        assert _render(_para(_text('"Hallo"')), config=config) == "\\glqq{}Hallo\\grqq{}\n"

    def test_mismatch_recovered_with_warning(self) -> None:
        result = render_document(_doc(_para(_text('a "b'))), LatexConfig(smart_quotes=True))
        assert result.text == 'a "b\n'
        assert len(result.warnings) == 1
        assert "Unbalanced" in result.warnings[0]


# =============================================================================
# Zones and templates
# =============================================================================


class TestZones:
    def test_routed_headings_fill_their_placeholder(self) -> None:
        config = LatexConfig(templates={"t": "BODY[%%BODY%%]APPENDIX[%%APPENDIX%%]"}, template="t")
        doc = _doc(
            _heading("Main"),
            _heading("A1", zone=Zone.APPENDIX),
            _heading("A2", zone=Zone.APPENDIX),
        )
        assert render_document(doc, config).text == (
            "BODY[\\section{Main}\n\\label{sec:ref1}]"
            "APPENDIX[\\section{A1}\n\\label{sec:ref2}\n\n\\section{A2}\n\\label{sec:ref3}]"
        )

    def test_subtree_travels_with_heading(self) -> None:
        config = LatexConfig(templates={"t": "%%BODY%%|%%BACKMATTER%%"}, template="t")
        inner = _heading("Colophon", 2, _para(_text("Set in TeX")))
        doc = _doc(_heading("End", 1, inner, zone=Zone.BACKMATTER))
        text = render_document(doc, config).text
        assert text.startswith("|\\section{End}")
        assert "\\subsection{Colophon}" in text
        assert text.endswith("Set in TeX")

    def test_nested_zone_headings_keep_document_order(self) -> None:
        config = LatexConfig(templates={"t": "%%BODY%%|%%APPENDIX%%"}, template="t")
        child = _heading("Child", 2, _para(_text("Detail")), zone=Zone.APPENDIX)
        text = render_document(_doc(_heading("Parent", 1, child, zone=Zone.APPENDIX)), config).text
        assert text == (
            "|\\section{Parent}\n\\label{sec:ref2}\n\n"
            "\\subsection{Child}\n\\label{sec:ref1}\nDetail"
        )

    def test_minimal_template_zone_order(self) -> None:
        doc = _doc(
            _heading("Index", zone=Zone.INDEX),
            _heading("Body"),
            _heading("Front", zone=Zone.FRONTMATTER),
        )
        text = _render(*doc.children)
        assert text.index("{Front}") < text.index("{Body}") < text.index("{Index}")

    def test_explicit_body_zone(self) -> None:
        assert _render(_heading("Main", zone=Zone.BODY)).startswith("\\section{Main}")


class TestTemplates:
    def test_article(self) -> None:
        doc = Document(
            location=LOC,
            children=(_para(_text("Hello")),),
            properties={"title": "Notes & Queries", "author": "Ann"},
        )
        text = render_document(doc, LatexConfig(template="article")).text
        assert text.startswith("\\documentclass[11pt]{article}")
        assert "\\title{Notes \\& Queries}" in text
        assert "\\author{Ann}" in text
        assert "pdflang={en}" in text
        assert "\nHello\n" in text
        assert "%%" not in text

    def test_title_annotations_stripped(self) -> None:
        doc = Document(location=LOC, children=(), properties={"title": "The @code{texloom} Manual"})
        text = render_document(doc, LatexConfig(template="article")).text
        assert "\\title{The texloom Manual}" in text

    def test_missing_template_falls_back(self) -> None:
        result = render_document(_doc(_para(_text("x"))), LatexConfig(template="nope"))
        assert result.text == "x\n"
        assert result.warnings == ("No template named 'nope'; using the minimal template",)

    def test_preamble_snippets(self) -> None:
        config = LatexConfig(
            templates={"t": "%%PREAMBLE%%\n%%BODY%%"},
            template="t",
            snippets={"fonts": "\\usepackage{lmodern}"},
            use_snippets=("fonts", "colors"),
        )
        result = render_document(_doc(_para(_text("x"))), config)
        assert result.text == "\\usepackage{lmodern}\nx"
        assert result.warnings == ("Unknown snippet 'colors' skipped",)

    def test_deterministic(self) -> None:
        doc = _doc(
            _heading("A", 1, _para(Target(location=LOC, value="t"), _text("x"))),
            _para(Link(location=LOC, kind="fuzzy", path="t")),
            _table(_row("1", "2"), caption=(_text("T"),)),
        )
        assert _render(*doc.children) == _render(*doc.children)
