"""Document assembly: zone buffers into a template.

Headings marked with a zone are rendered during the walk like any other
heading, but their text goes to that zone's buffer instead of the body.
Once the walk is done the assembler substitutes every buffer, joined by
blank lines, for its ``%%ZONE%%`` placeholder in the template.

Placeholders:

==================  ============================================
Token               Replaced with
==================  ============================================
``%%BODY%%``        the document's own output
``%%FRONTMATTER%%`` and the other zones: their buffer
``%%TITLE%%`` ...   escaped document properties
``%%PREAMBLE%%``    snippets named in ``config.use_snippets``
==================  ============================================

Unknown ``%%...%%`` tokens are left as they are.

Example:
    >>> fill_template("A%%BODY%%B%%OTHER%%", {"BODY": "x"})
    'AxB%%OTHER%%'

"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence

from texloom.config import LatexConfig
from texloom.errors import MissingTemplateError
from texloom.escape import escape_text
from texloom.nodes import Zone
from texloom.utils.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_RE = re.compile(r"%%([A-Z]+)%%")

# Zone order of the minimal template
MINIMAL_ZONE_ORDER: tuple[Zone, ...] = (
    Zone.FRONTMATTER,
    Zone.BODY,
    Zone.APPENDIX,
    Zone.INDEX,
    Zone.BACKMATTER,
    Zone.COPYING,
)

# Document properties available as placeholders
METADATA_KEYS: tuple[str, ...] = (
    "title",
    "subtitle",
    "author",
    "date",
    "email",
    "description",
    "keywords",
    "language",
)


def join_chunks(chunks: Sequence[str]) -> str:
    """Join rendered chunks with one blank line between them."""
    return "\n\n".join(chunk.strip("\n") for chunk in chunks if chunk.strip())


def fill_template(template: str, values: Mapping[str, str]) -> str:
    """Replace known ``%%NAME%%`` tokens; unknown ones stay untouched.

    Single pass, so substituted text is never scanned for tokens again.
    """
    return PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def lookup_template(name: str, config: LatexConfig) -> str:
    """Return the template called ``name``.

    Raises:
        MissingTemplateError: If the configuration has no such template.
    """
    template = config.templates.get(name)
    if template is None:
        raise MissingTemplateError(name)
    return template


def minimal_document(zones: Mapping[Zone, str]) -> str:
    """Non-empty zones in fixed order, separated by blank lines."""
    parts = [zones[zone] for zone in MINIMAL_ZONE_ORDER if zones.get(zone)]
    return "\n\n".join(parts) + "\n" if parts else ""


def build_preamble(config: LatexConfig, on_warning: Callable[[str], None]) -> str:
    """Concatenate the snippets named in ``config.use_snippets``."""
    snippets: list[str] = []
    for name in config.use_snippets:
        snippet = config.snippets.get(name)
        if snippet is None:
            on_warning(f"Unknown snippet {name!r} skipped")
            continue
        snippets.append(snippet.rstrip("\n"))
    return "\n".join(snippets)


def _log_warning(message: str) -> None:
    logger.warning(message)


def assemble_document(
    body: str,
    zone_buffers: Mapping[Zone, Sequence[str]],
    template_name: str | None,
    *,
    config: LatexConfig,
    properties: Mapping[str, str] | None = None,
    on_warning: Callable[[str], None] | None = None,
) -> str:
    """Build the final artifact from the body and the zone buffers.

    Args:
        body: Rendered body stream
        zone_buffers: Rendered zone headings, per zone, in document order
        template_name: Name of a template in ``config.templates``, or None
            for the minimal template
        config: Render configuration
        properties: Document metadata for the ``%%TITLE%%`` family
        on_warning: Called with non-fatal problems (logged when omitted)

    Returns:
        The complete LaTeX text.
    """
    warn = on_warning or _log_warning
    zones: dict[Zone, str] = {zone: join_chunks(chunks) for zone, chunks in zone_buffers.items()}
    zones[Zone.BODY] = body.strip("\n")

    if template_name is None:
        return minimal_document(zones)
    try:
        template = lookup_template(template_name, config)
    except MissingTemplateError as exc:
        warn(f"{exc}; using the minimal template")
        return minimal_document(zones)

    properties = properties or {}
    values = {zone.name: zones.get(zone, "") for zone in Zone}
    for key in METADATA_KEYS:
        values[key.upper()] = escape_text(properties.get(key, ""))
    if not properties.get("language"):
        values["LANGUAGE"] = config.language
    values["PREAMBLE"] = build_preamble(config, warn)
    logger.debug("Filling template %r", template_name)
    return fill_template(template, values)
