"""Smart quote substitution.

Replaces straight ``"`` and ``'`` with the language's typographic quote
commands, tracking nesting with a stack. Input that does not balance raises
``QuoteMismatchError``; callers decide how to recover.

Example:
    >>> smart_quotes('"outer \\'inner\\' outer"', QUOTE_DELIMITERS["en"])
    "``outer `inner' outer''"

Thread Safety:
    Pure functions over immutable tables.
"""

from __future__ import annotations

from collections.abc import Mapping

from texloom.errors import QuoteMismatchError

# Delimiters per language. Keys: primary-opening, primary-closing,
# secondary-opening, secondary-closing, apostrophe.
QUOTE_DELIMITERS: dict[str, dict[str, str]] = {
    "en": {
        "primary-opening": "``",
        "primary-closing": "''",
        "secondary-opening": "`",
        "secondary-closing": "'",
        "apostrophe": "'",
    },
    "de": {
        "primary-opening": "\\glqq{}",
        "primary-closing": "\\grqq{}",
        "secondary-opening": "\\glq{}",
        "secondary-closing": "\\grq{}",
        "apostrophe": "'",
    },
    "fr": {
        "primary-opening": "\\og{}",
        "primary-closing": "\\fg{}",
        "secondary-opening": "\\og{}",
        "secondary-closing": "\\fg{}",
        "apostrophe": "'",
    },
    "es": {
        "primary-opening": "\\guillemotleft{}",
        "primary-closing": "\\guillemotright{}",
        "secondary-opening": "``",
        "secondary-closing": "''",
        "apostrophe": "'",
    },
}

_OPENING_CONTEXT = frozenset(" \t\n([{-/")

_PRIMARY = "primary"
_SECONDARY = "secondary"


def _opens(text: str, index: int) -> bool:
    """A quote opens when it starts the text or follows whitespace/an opener."""
    return index == 0 or text[index - 1] in _OPENING_CONTEXT


def _is_apostrophe(text: str, index: int) -> bool:
    return (
        0 < index < len(text) - 1
        and text[index - 1].isalnum()
        and text[index + 1].isalnum()
    )


def smart_quotes(text: str, delimiters: Mapping[str, str]) -> str:
    """Replace straight quotes in ``text`` with ``delimiters``.

    Args:
        text: Text to process (already escaped for LaTeX)
        delimiters: Quote table for the document language

    Returns:
        Text with typographic quotes

    Raises:
        QuoteMismatchError: If a closing quote has no matching opener or an
            opener is never closed
    """
    if '"' not in text and "'" not in text:
        return text

    parts: list[str] = []
    stack: list[tuple[str, int]] = []
    # Index of the last opening quote; a quote right after it opens too
    opened_at = -2

    for index, char in enumerate(text):
        opens = _opens(text, index) or opened_at == index - 1
        if char == '"':
            if opens:
                opened_at = index
                stack.append((_PRIMARY, index))
                parts.append(delimiters["primary-opening"])
            elif stack and stack[-1][0] == _PRIMARY:
                stack.pop()
                parts.append(delimiters["primary-closing"])
            else:
                raise QuoteMismatchError(text, index)
        elif char == "'":
            if _is_apostrophe(text, index):
                parts.append(delimiters["apostrophe"])
            elif opens:
                opened_at = index
                stack.append((_SECONDARY, index))
                parts.append(delimiters["secondary-opening"])
            elif stack and stack[-1][0] == _SECONDARY:
                stack.pop()
                parts.append(delimiters["secondary-closing"])
            elif not stack:
                # Trailing possessive outside any quotation
                parts.append(delimiters["apostrophe"])
            else:
                raise QuoteMismatchError(text, index)
        else:
            parts.append(char)

    if stack:
        raise QuoteMismatchError(text, stack[-1][1])

    return "".join(parts)


def delimiters_for(language: str, table: Mapping[str, Mapping[str, str]]) -> Mapping[str, str]:
    """Pick the quote table for ``language``, falling back to English.

    ``language`` may carry a region (``en-GB``); only the primary subtag
    is used for lookup.
    """
    primary = language.split("-")[0].split("_")[0].lower()
    return table.get(primary) or table.get("en") or QUOTE_DELIMITERS["en"]
