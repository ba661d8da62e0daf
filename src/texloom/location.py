"""Source positions attached to document nodes.

The external parser that builds the tree records where each node came from.
Texloom only uses these positions to make fatal errors point back at the
source document.

Thread Safety:
SourceLocation is frozen (immutable) and safe to share.

"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Position of a node in the parsed source.

    Positions are 1-indexed. A zero line number means the node was built
    synthetically (for example by a rewrite pass).

    Attributes:
        lineno: Starting line number (1-indexed)
        col_offset: Starting column (1-indexed)
        source_file: Source file path (optional)

    Examples:
            >>> SourceLocation(12, 3, "notes.org")
            SourceLocation(lineno=12, col_offset=3, source_file='notes.org')
            >>> str(SourceLocation(12, 3, "notes.org"))
            'notes.org:12:3'

    """

    lineno: int
    col_offset: int
    source_file: str | None = None

    def __str__(self) -> str:
        """Format as ``file:line:col`` or ``line:col``."""
        if self.source_file:
            return f"{self.source_file}:{self.lineno}:{self.col_offset}"
        return f"{self.lineno}:{self.col_offset}"

    @property
    def is_known(self) -> bool:
        """True when the location points into real source text."""
        return self.lineno > 0

    @classmethod
    def unknown(cls) -> SourceLocation:
        """Placeholder location for synthetic nodes."""
        return cls(lineno=0, col_offset=0)
