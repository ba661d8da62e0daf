"""Texloom renderers.

Renderers convert document trees into output formats.

Available Renderers:
- LatexRenderer: Renders a tree to a complete LaTeX document

Thread Safety:
Per-render state lives in a RenderContext local to each render() call.
Safe for concurrent use from multiple threads.

"""

from texloom.renderers.latex import LatexRenderer
from texloom.renderers.protocol import TreeRenderer

__all__ = ["LatexRenderer", "TreeRenderer"]
