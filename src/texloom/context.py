"""Per-render mutable state.

A ``RenderContext`` is created at the start of each render, threaded
through every transcoder call, and dropped once the assembler has built
the final artifact. Nothing in it outlives the render.

Thread Safety:
    Each render() call creates its own RenderContext instance; it is never
    shared between renders.

"""

from __future__ import annotations

from dataclasses import dataclass, field

from texloom.config import LatexConfig
from texloom.nodes import MathRun, Node, Table, Zone
from texloom.references import ReferenceResolver
from texloom.tables import TableGeometry, compute_geometry
from texloom.utils.logger import get_logger

logger = get_logger(__name__)

# Zones that have their own buffer; the body is the document's own output
BUFFERED_ZONES: tuple[Zone, ...] = (
    Zone.FRONTMATTER,
    Zone.BACKMATTER,
    Zone.APPENDIX,
    Zone.COPYING,
    Zone.INDEX,
)


@dataclass(slots=True)
class RenderContext:
    """Per-render mutable state.

    Attributes:
        config: Resolved configuration for this render
        references: Label registry and link index
        zone_buffers: Rendered headings routed out of the body, per zone
        zone_slots: id(heading) -> its reserved index in a zone buffer
        language_cache: Source language -> backend language name
        footnote_numbers: Footnote label -> number of its first reference
        footnote_count: Footnotes numbered so far
        ancestors: Nodes whose transcoder is pending, outermost first
        table_geometry: id(table) -> its layout
        longtable_footers: id(table) -> footer rows held back for the head
        warnings: Non-fatal problems, in the order they happened

    """

    config: LatexConfig
    references: ReferenceResolver = field(default_factory=ReferenceResolver)
    zone_buffers: dict[Zone, list[str]] = field(
        default_factory=lambda: {zone: [] for zone in BUFFERED_ZONES}
    )
    zone_slots: dict[int, int] = field(default_factory=dict)
    language_cache: dict[str, str] = field(default_factory=dict)
    footnote_numbers: dict[str, int] = field(default_factory=dict)
    footnote_count: int = 0
    ancestors: list[Node] = field(default_factory=list)
    table_geometry: dict[int, TableGeometry] = field(default_factory=dict)
    longtable_footers: dict[int, list[str]] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        """Record a non-fatal problem and log it."""
        self.warnings.append(message)
        logger.warning(message)

    def reserve(self, zone: Zone, node: Node) -> None:
        """Hold the next slot of a zone buffer for ``node``.

        Called when the walk enters a zone heading, so headings keep
        document order even though each is rendered after its descendants.
        """
        buffer = self.zone_buffers[zone]
        self.zone_slots[id(node)] = len(buffer)
        buffer.append("")

    def route(self, zone: Zone, text: str, node: Node | None = None) -> None:
        """Put rendered text in a zone buffer.

        Text for a node with a reserved slot fills that slot; anything else
        is appended.
        """
        buffer = self.zone_buffers[zone]
        slot = self.zone_slots.pop(id(node), None) if node is not None else None
        if slot is None:
            buffer.append(text)
        else:
            buffer[slot] = text

    def translate_language(self, language: str) -> str:
        """Backend name of a source language, memoized for the render.

        Lookup is case-insensitive; unknown languages pass through.
        """
        cached = self.language_cache.get(language)
        if cached is not None:
            return cached
        names = self.config.language_names
        translated = names.get(language) or names.get(language.lower()) or language
        self.language_cache[language] = translated
        logger.debug("Language %r maps to %r", language, translated)
        return translated

    def next_footnote(self, label: str) -> tuple[int, bool]:
        """Number for footnote ``label`` and whether this is its first use."""
        number = self.footnote_numbers.get(label)
        if number is not None:
            return number, False
        self.footnote_count += 1
        self.footnote_numbers[label] = self.footnote_count
        return self.footnote_count, True

    def in_math(self) -> bool:
        """True while rendering inside a math run."""
        return any(isinstance(node, MathRun) for node in self.ancestors)

    def parent(self) -> Node | None:
        """The node whose children are being rendered."""
        return self.ancestors[-1] if self.ancestors else None

    def enclosing_table(self) -> Table | None:
        """Closest table among the ancestors."""
        for node in reversed(self.ancestors):
            if isinstance(node, Table):
                return node
        return None

    def geometry(self, table: Table) -> TableGeometry:
        """Layout of ``table``, computed on first request."""
        geometry = self.table_geometry.get(id(table))
        if geometry is None:
            geometry = compute_geometry(table, self.config)
            self.table_geometry[id(table)] = geometry
        return geometry
