"""Render configuration for Texloom.

``LatexConfig`` is an immutable bag of named options: templates, snippets,
environment names, markup formats, table styling, quote tables and the
language-name translation table. The engine never reads configuration from
files; callers build a ``LatexConfig`` in code or from a plain mapping.

Usage:
    config = LatexConfig(template="article", smart_quotes=True)
    result = render_document(doc, config)

    # From an external source (YAML, TOML, a host application's settings)
    config = LatexConfig.from_dict({"template": "book", "headline_levels": 4})

Thread Safety:
    Frozen dataclass; safe to share between renderers.

"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Literal

from texloom.quotes import QUOTE_DELIMITERS

ARTICLE_TEMPLATE = r"""\documentclass[11pt]{article}
\usepackage[utf8]{inputenc}
\usepackage[T1]{fontenc}
\usepackage{graphicx}
\usepackage{longtable}
\usepackage{booktabs}
\usepackage{capt-of}
\usepackage{amsmath}
\usepackage{amssymb}
\usepackage[normalem]{ulem}
\usepackage{hyperref}
%%PREAMBLE%%
\title{%%TITLE%%}
\author{%%AUTHOR%%}
\date{%%DATE%%}
\hypersetup{
 pdftitle={%%TITLE%%},
 pdfauthor={%%AUTHOR%%},
 pdfkeywords={%%KEYWORDS%%},
 pdfsubject={%%DESCRIPTION%%},
 pdflang={%%LANGUAGE%%}}
\begin{document}

\maketitle
%%COPYING%%

%%FRONTMATTER%%

%%BODY%%

\appendix
%%APPENDIX%%

%%BACKMATTER%%

%%INDEX%%
\end{document}
"""

BOOK_TEMPLATE = r"""\documentclass[11pt]{book}
\usepackage[utf8]{inputenc}
\usepackage[T1]{fontenc}
\usepackage{graphicx}
\usepackage{longtable}
\usepackage{booktabs}
\usepackage{capt-of}
\usepackage{amsmath}
\usepackage{amssymb}
\usepackage[normalem]{ulem}
\usepackage{makeidx}
\usepackage{hyperref}
\makeindex
%%PREAMBLE%%
\title{%%TITLE%%}
\author{%%AUTHOR%%}
\date{%%DATE%%}
\begin{document}

\frontmatter
\maketitle
%%COPYING%%

%%FRONTMATTER%%

\tableofcontents

\mainmatter
%%BODY%%

\appendix
%%APPENDIX%%

\backmatter
%%BACKMATTER%%

%%INDEX%%
\printindex
\end{document}
"""

DEFAULT_TEMPLATES: dict[str, str] = {
    "article": ARTICLE_TEMPLATE,
    "book": BOOK_TEMPLATE,
}

# (numbered, unnumbered) sectioning commands by heading level
DEFAULT_SECTIONING: tuple[tuple[str, str], ...] = (
    ("\\section{%s}", "\\section*{%s}"),
    ("\\subsection{%s}", "\\subsection*{%s}"),
    ("\\subsubsection{%s}", "\\subsubsection*{%s}"),
    ("\\paragraph{%s}", "\\paragraph*{%s}"),
    ("\\subparagraph{%s}", "\\subparagraph*{%s}"),
)

DEFAULT_TEXT_MARKUP: dict[str, str] = {
    "bold": "\\textbf{%s}",
    "italic": "\\emph{%s}",
    "underline": "\\uline{%s}",
    "strike-through": "\\sout{%s}",
    "code": "\\texttt{%s}",
    "verbatim": "\\texttt{%s}",
}

DEFAULT_TIMESTAMP_FORMATS: dict[str, str] = {
    "active": "\\textit{%s}",
    "inactive": "\\textit{%s}",
    "diary": "\\textit{%s}",
}

# Source language names as listings/minted know them
DEFAULT_LANGUAGE_NAMES: dict[str, str] = {
    "c": "C",
    "cc": "C++",
    "cpp": "C++",
    "c++": "C++",
    "elisp": "Lisp",
    "emacs-lisp": "Lisp",
    "fortran": "fortran",
    "go": "Go",
    "java": "Java",
    "js": "JavaScript",
    "javascript": "JavaScript",
    "lisp": "Lisp",
    "ocaml": "[Objective]Caml",
    "perl": "Perl",
    "python": "Python",
    "r": "R",
    "ruby": "Ruby",
    "sh": "bash",
    "shell": "bash",
    "sql": "SQL",
    "sqlite": "SQL",
    "tex": "TeX",
    "latex": "[LaTeX]TeX",
}

DEFAULT_ENVIRONMENTS: dict[str, str] = {
    "center": "center",
    "abstract": "abstract",
    "verse": "verse",
}


@dataclass(frozen=True, slots=True)
class LatexConfig:
    """Immutable render configuration.

    Attributes:
        templates: Template strings by name, with ``%%ZONE%%`` placeholders
        template: Name of the template to use; None selects the minimal one
        snippets: Preamble snippets by name
        use_snippets: Names of snippets substituted at ``%%PREAMBLE%%``
        environments: Special block type to LaTeX environment name
        sectioning: (numbered, unnumbered) commands per heading level
        headline_levels: Deeper headings render as list items
        section_numbers: Number sections at all
        text_markup: Format strings for bold, italic, code, ...
        timestamp_formats: Format strings by timestamp kind
        code_backend: ``verbatim``, ``listings`` or ``minted``
        listings_options: Extra ``\\lstset`` pairs for every listing
        minted_options: Extra minted options for every listing
        language_names: Source language to backend language name
        smart_quotes: Replace straight quotes with typographic ones
        language: Document language; selects the quote table
        quotes: Quote tables by language
        table_environment: Default table environment
        table_float: Float wrapped around tables (empty for none)
        table_placement: Float placement of tables, e.g. ``[htbp]``
        table_centered: Center floated tables
        table_booktabs: Use booktabs rules instead of ``\\hline``
        table_header: Treat the leading rows as a header by default
        table_caption_above: Put table captions above the table
        table_footer_content: Text of the continuation footer row; a
            non-empty value also enables footers
        table_footer_style: Format string applied to footer cells
        table_cell_styles: Format strings by cell role name
        table_row_styles: Row prefix (``\\rowcolor{...}``) by row role name
        image_default_width: Width used when an image sets none
        figure_placement: Float placement of figures
        figure_caption_above: Put figure captions above the image

    """

    templates: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_TEMPLATES))
    template: str | None = None
    snippets: Mapping[str, str] = field(default_factory=dict)
    use_snippets: tuple[str, ...] = ()
    environments: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_ENVIRONMENTS))
    sectioning: tuple[tuple[str, str], ...] = DEFAULT_SECTIONING
    headline_levels: int = 3
    section_numbers: bool = True
    text_markup: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_TEXT_MARKUP))
    timestamp_formats: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_TIMESTAMP_FORMATS)
    )
    code_backend: Literal["verbatim", "listings", "minted"] = "verbatim"
    listings_options: tuple[tuple[str, str], ...] = ()
    minted_options: tuple[tuple[str, str], ...] = ()
    language_names: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_LANGUAGE_NAMES))
    smart_quotes: bool = False
    language: str = "en"
    quotes: Mapping[str, Mapping[str, str]] = field(default_factory=lambda: dict(QUOTE_DELIMITERS))
    table_environment: str = "tabular"
    table_float: str = "table"
    table_placement: str = ""
    table_centered: bool = True
    table_booktabs: bool = True
    table_header: bool = False
    table_caption_above: bool = True
    table_footer_content: str = ""
    table_footer_style: str = ""
    table_cell_styles: Mapping[str, str] = field(default_factory=dict)
    table_row_styles: Mapping[str, str] = field(default_factory=dict)
    image_default_width: str = ".9\\linewidth"
    figure_placement: str = "[htbp]"
    figure_caption_above: bool = False

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> LatexConfig:
        """Create LatexConfig from a mapping.

        Useful when options come from an external source. Only keys that
        are LatexConfig fields are used; unknown keys are silently ignored.
        Lists are converted to tuples so the result stays immutable.

        Args:
            config_dict: Mapping whose keys match LatexConfig attribute names.

        Returns:
            New LatexConfig instance with values from the mapping.

        Example:
            >>> config = LatexConfig.from_dict({
            ...     "template": "article",
            ...     "use_snippets": ["fonts"],
            ...     "unknown_key": "ignored",
            ... })
            >>> config.use_snippets
            ('fonts',)

        """
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: _freeze(v) for k, v in config_dict.items() if k in valid_fields}
        return cls(**filtered)

    def with_overrides(self, **overrides: Any) -> LatexConfig:
        """Return a copy with some options replaced."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: _freeze(v) for k, v in overrides.items()})
        return LatexConfig(**values)


def _freeze(value: Any) -> Any:
    """Turn (nested) lists into tuples; leave everything else alone."""
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


DEFAULT_CONFIG: LatexConfig = LatexConfig()


__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_TEMPLATES",
    "LatexConfig",
]
