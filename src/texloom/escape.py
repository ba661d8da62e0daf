"""Pure string transforms for LaTeX output.

Every function here maps text to text and knows nothing about the tree,
so each character-class table can be tested on its own.

Character classes:

===================  ==============================  =========================
Table                Characters                      Used by
===================  ==============================  =========================
``TEXT_ESCAPES``     ``\\ { } $ & # % _ ~ ^``         plain text, captions
``URL_ESCAPES``      ``% # \\``                       ``\\href``/``\\url``
``LABEL_UNSAFE``     anything outside ``[\\w:.-]``    ``\\label``/``\\ref`` keys
===================  ==============================  =========================

Example:
    >>> escape_text("50% of $5 & more")
    '50\\\\% of \\\\$5 \\\\& more'
    >>> sanitize_label("sec:Intro & Scope")
    'sec:Intro-Scope'
"""

from __future__ import annotations

import re

# Characters with special meaning in LaTeX text mode and their replacements.
TEXT_ESCAPES: dict[str, str] = {
    "\\": "\\textbackslash{}",
    "{": "\\{",
    "}": "\\}",
    "$": "\\$",
    "&": "\\&",
    "#": "\\#",
    "%": "\\%",
    "_": "\\_",
    "~": "\\textasciitilde{}",
    "^": "\\textasciicircum{}",
}

# Characters that break hyperref's URL arguments.
URL_ESCAPES: dict[str, str] = {
    "%": "\\%",
    "#": "\\#",
    "\\": "\\\\",
}

_TEXT_ESCAPE_RE = re.compile("|".join(re.escape(c) for c in TEXT_ESCAPES))
_URL_ESCAPE_RE = re.compile("|".join(re.escape(c) for c in URL_ESCAPES))
_ELLIPSIS_RE = re.compile(r"\.\.\.")
_LABEL_UNSAFE_RE = re.compile(r"[^\w:.\-]+", re.ASCII)


def escape_text(text: str) -> str:
    """Escape LaTeX special characters in running text.

    Single pass: replacement text is never escaped again.
    Three dots become ``\\ldots{}``.
    """
    if not text:
        return ""
    escaped = _TEXT_ESCAPE_RE.sub(lambda m: TEXT_ESCAPES[m.group(0)], text)
    return _ELLIPSIS_RE.sub(r"\\ldots{}", escaped)


def escape_texttt(text: str) -> str:
    """Escape text for use inside ``\\texttt{}``.

    Unlike :func:`escape_text`, dots are left alone so code keeps its shape.
    """
    if not text:
        return ""
    return _TEXT_ESCAPE_RE.sub(lambda m: TEXT_ESCAPES[m.group(0)], text)


def escape_url(url: str) -> str:
    """Protect characters hyperref cannot take verbatim in a URL."""
    return _URL_ESCAPE_RE.sub(lambda m: URL_ESCAPES[m.group(0)], url)


def sanitize_label(key: str) -> str:
    """Make a string safe as a ``\\label`` key.

    Runs of unsafe characters collapse to a single hyphen. Case is kept
    because custom ids are case-sensitive.
    """
    return _LABEL_UNSAFE_RE.sub("-", key).strip("-")


def strip_math_delimiters(value: str) -> str:
    """Remove ``$...$``, ``$$...$$``, ``\\(...\\)`` or ``\\[...\\]`` around math."""
    for opening, closing in (("$$", "$$"), ("\\(", "\\)"), ("\\[", "\\]"), ("$", "$")):
        if (
            len(value) >= len(opening) + len(closing)
            and value.startswith(opening)
            and value.endswith(closing)
        ):
            return value[len(opening) : len(value) - len(closing)]
    return value
