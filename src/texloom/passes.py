"""Tree-rewrite passes run before rendering.

Each pass is a pure ``Document -> Document`` function built on
``texloom.visitor.transform``: the input tree is never modified and
untouched subtrees are shared. Every pass is idempotent, so running the
pipeline on its own output changes nothing.

Passes run in the order of ``REWRITE_PASSES``:

1. ``merge_math_runs`` wraps adjacent math objects in a single ``MathRun``
   so they render inside one ``\\( ... \\)``.
2. ``strip_foreign_annotations`` removes Texinfo-style ``@code{...}``
   wrappers from document metadata, keeping the inner text.

"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Callable, Sequence

from texloom.nodes import (
    SECONDARY_FIELDS,
    Document,
    Entity,
    LatexFragment,
    MathRun,
    Node,
    Subscript,
    Superscript,
)
from texloom.utils.logger import get_logger
from texloom.visitor import transform

logger = get_logger(__name__)

# =============================================================================
# Math runs
# =============================================================================


def _starts_math_run(node: Node) -> bool:
    """Objects that open a math run: math entities and inline math fragments."""
    match node:
        case Entity():
            return node.latex_math
        case LatexFragment():
            value = node.value
            return value.startswith("\\(") or (
                len(value) > 1 and value.startswith("$") and value[1] != "$"
            )
        case _:
            return False


def _joins_math_run(node: Node, run: Sequence[Node]) -> bool:
    """Whether ``node`` may extend ``run``.

    A subscript or superscript joins only if the run has none of that type
    yet, which keeps ``x_{i}_{j}`` from becoming a double subscript.
    """
    if _starts_math_run(node):
        return True
    if isinstance(node, (Subscript, Superscript)):
        return not any(type(member) is type(node) for member in run)
    return False


def _merge_sequence(nodes: Sequence[Node]) -> tuple[Node, ...] | None:
    """Wrap maximal math runs in ``nodes``; None when there is nothing to wrap."""
    if not any(_starts_math_run(node) for node in nodes):
        return None

    result: list[Node] = []
    index = 0
    while index < len(nodes):
        node = nodes[index]
        index += 1
        if not _starts_math_run(node):
            result.append(node)
            continue

        run: list[Node] = [node]
        while (
            index < len(nodes)
            and run[-1].post_blank == 0  # type: ignore[attr-defined]
            and _joins_math_run(nodes[index], run)
        ):
            run.append(nodes[index])
            index += 1

        last = run[-1]
        members = (*run[:-1], dataclasses.replace(last, post_blank=0))
        result.append(
            MathRun(
                location=run[0].location,
                children=members,  # type: ignore[arg-type]
                post_blank=last.post_blank,  # type: ignore[attr-defined]
            )
        )
    return tuple(result)


def _wrap_math(node: Node) -> Node:
    changes: dict[str, tuple[Node, ...]] = {}
    for name in ("children", *SECONDARY_FIELDS):
        sequence = getattr(node, name, None)
        if not sequence:
            continue
        merged = _merge_sequence(sequence)
        if merged is not None:
            changes[name] = merged
    if changes:
        return dataclasses.replace(node, **changes)
    return node


def merge_math_runs(doc: Document) -> Document:
    """Replace runs of adjacent math objects with ``MathRun`` containers.

    A run starts at an inline math fragment (``$x$`` or ``\\(x\\)``) or a
    math entity and absorbs following siblings while the previous member has
    no trailing space. The run keeps the trailing space of its last member.
    Existing ``MathRun`` subtrees are left alone.
    """
    return transform(doc, _wrap_math, skip=lambda node: isinstance(node, MathRun))


# =============================================================================
# Foreign annotations
# =============================================================================

# Texinfo markup commands that may wrap text in metadata
FOREIGN_ANNOTATIONS: frozenset[str] = frozenset({
    "acronym",
    "code",
    "command",
    "dfn",
    "emph",
    "env",
    "file",
    "kbd",
    "key",
    "option",
    "samp",
    "strong",
    "url",
    "var",
})

# Document properties cleaned by strip_foreign_annotations
ANNOTATED_PROPERTIES: tuple[str, ...] = ("title", "subtitle", "author", "description", "keywords")

_ANNOTATION_RE = re.compile(
    r"@(" + "|".join(sorted(FOREIGN_ANNOTATIONS)) + r")\{([^{}]*)\}"
)


def strip_annotations(text: str) -> str:
    """Remove annotation wrappers from ``text``, innermost first.

    Example:
        >>> strip_annotations("Using @code{@var{name}} safely")
        'Using name safely'
    """
    while True:
        stripped = _ANNOTATION_RE.sub(r"\2", text)
        if stripped == text:
            return stripped
        text = stripped


def strip_foreign_annotations(doc: Document) -> Document:
    """Strip annotation wrappers from the document's metadata fields."""
    properties = dict(doc.properties)
    changed = False
    for key in ANNOTATED_PROPERTIES:
        value = properties.get(key)
        if not value:
            continue
        stripped = strip_annotations(value)
        if stripped != value:
            logger.debug("Stripped annotations from %s property", key)
            properties[key] = stripped
            changed = True
    if not changed:
        return doc
    return dataclasses.replace(doc, properties=properties)


REWRITE_PASSES: tuple[Callable[[Document], Document], ...] = (
    merge_math_runs,
    strip_foreign_annotations,
)


def run_rewrite_passes(doc: Document) -> Document:
    """Apply every rewrite pass in order."""
    for rewrite in REWRITE_PASSES:
        doc = rewrite(doc)
    return doc
