"""TreeRenderer protocol: the interface render_document relies on.

Anything with ``render(node) -> str`` and ``get_warnings()`` conforms. The
built-in ``LatexRenderer`` is the reference implementation.

Example:
    from texloom.renderers.protocol import TreeRenderer

    def export(renderer: TreeRenderer, doc: Document) -> str:
        return renderer.render(doc)

"""

from typing import Protocol

from texloom.nodes import Document


class TreeRenderer(Protocol):
    """Protocol for document tree renderers."""

    def render(self, node: Document) -> str:
        """Render a Document to the final text artifact."""
        ...

    def get_warnings(self) -> list[str]:
        """Non-fatal problems met by the last render() call."""
        ...
