"""Key/value argument formatting for LaTeX commands.

Used for ``\\lstset{...}``, ``minted`` options and ``\\includegraphics``
options.

Example:
    >>> format_args([("language", "Python"), ("caption", "")])
    'language={Python}'
    >>> format_options([("width", ".9\\\\linewidth")])
    '[width={.9\\\\linewidth}]'
"""

from __future__ import annotations

from collections.abc import Iterable

type ArgPairs = Iterable[tuple[str, str | None]]


def format_args(pairs: ArgPairs, oneline: bool = False) -> str:
    """Serialize key/value pairs as ``key={value}`` arguments.

    Pairs whose value is empty or None are dropped; the order of the
    remaining pairs is preserved.

    Args:
        pairs: Ordered (key, value) pairs
        oneline: Join with ``,`` instead of ``,`` plus newline and indent

    Returns:
        The joined argument string (empty when nothing survives)
    """
    separator = "," if oneline else ",\n   "
    return separator.join(f"{key}={{{value}}}" for key, value in pairs if value)


def format_options(pairs: ArgPairs) -> str:
    """Like :func:`format_args` on one line, wrapped in brackets.

    Returns an empty string when no pair survives, so the result can be
    appended to a command name unconditionally.
    """
    args = format_args(pairs, oneline=True)
    return f"[{args}]" if args else ""
