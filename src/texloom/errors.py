"""Exception classes for Texloom.

Fatal errors (``RenderError``, ``ReferenceNotFoundError``,
``CodeRefNotFoundError``) propagate out of ``render_document`` and no
artifact is returned. The remaining errors are raised internally and
recovered close to where they happen.
"""

from __future__ import annotations

from texloom.location import SourceLocation


class TexloomError(Exception):
    """Base exception for all Texloom errors.

    Subclass this for specific error categories.
    """

    pass


class RenderError(TexloomError):
    """Error during LaTeX rendering.

    Raised when the renderer meets a node kind it has no transcoder for.
    This always means the rendering table is incomplete.
    """

    def __init__(self, message: str, location: SourceLocation | None = None) -> None:
        """Initialize render error with an optional source location.

        Args:
            message: Error description
            location: Where the offending node came from (optional)
        """
        self.message = message
        self.location = location
        prefix = f"{location} " if location is not None and location.is_known else ""
        super().__init__(f"{prefix}{message}")


class ReferenceNotFoundError(RenderError):
    """A link, radio target, id or footnote label resolves to nothing."""

    def __init__(self, kind: str, path: str, location: SourceLocation | None = None) -> None:
        """Initialize unresolved reference error.

        Args:
            kind: Link kind (``fuzzy``, ``id``, ``footnote``, ...)
            path: The reference that could not be resolved
            location: Where the reference appears (optional)
        """
        self.kind = kind
        self.path = path
        super().__init__(f"Unable to resolve {kind} link: {path!r}", location)


class CodeRefNotFoundError(RenderError):
    """A code-line reference is not present in its code block."""

    def __init__(self, label: str, location: SourceLocation | None = None) -> None:
        """Initialize code reference error.

        Args:
            label: Coderef label that was searched for
            location: Where the reference appears (optional)
        """
        self.label = label
        super().__init__(f"Unable to resolve code reference: {label!r}", location)


class QuoteMismatchError(TexloomError):
    """Opening and closing smart quotes do not balance.

    Recovered by the text transcoder, which keeps the text unprocessed.
    """

    def __init__(self, text: str, position: int) -> None:
        self.text = text
        self.position = position
        super().__init__(f"Unbalanced quotes at offset {position} in {text!r}")


class MissingTemplateError(TexloomError):
    """The configured template name has no template string.

    Recovered by the assembler, which falls back to the minimal template.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No template named {name!r}")


class UnknownDirectiveError(TexloomError):
    """A keyword directive value is not recognized.

    Recovered silently: the keyword renders nothing.
    """

    def __init__(self, key: str, value: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Unknown {key} directive: {value!r}")
