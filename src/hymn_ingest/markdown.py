"""Canonical markdown song format.

A song is a ``---`` delimited front-matter block of ``key: value`` lines
followed by sections, each introduced by a ``# <label>`` heading::

    ---
    title: Amazing Grace
    author: John Newton
    tags: [hymn, grace]
    ---

    # Verse 1
    Amazing grace, how sweet the sound
    That saved a wretch like me

    # Chorus 1
    ...

Front-matter values that look numeric become ``int``/``float`` and
``[a, b]`` values become lists; ``title`` is always kept as written.  Bare
section headings are numbered on read (see :mod:`hymn_ingest.sections`).

Usage::

    from hymn_ingest.markdown import format_song, parse_song
    content = parse_song(Path("amazing-grace.md").read_text())
    text = format_song(content)
"""

import re
from typing import Any

from .exceptions import MissingTitleError
from .models import SongContent, SongMetadata, SongSection
from .sections import SectionNumberer

_FRONT_MATTER_RE = re.compile(r"\A---\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)(.*)\Z", re.DOTALL | re.MULTILINE)
_HEADING_RE = re.compile(r"^#\s+(.+)$")
_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+$")

# Front-matter keys with a dedicated SongMetadata field, in emission order.
_KNOWN_KEYS = ("title", "author", "ccli", "key", "tempo", "tags")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_song(markdown: str) -> SongContent:
    """Parse canonical markdown into a :class:`~hymn_ingest.models.SongContent`.

    Raises :class:`~hymn_ingest.exceptions.MissingTitleError` if the
    front-matter is absent or has no ``title``.
    """
    fields, body = parse_front_matter(markdown)
    if not fields.get("title"):
        raise MissingTitleError()

    metadata = SongMetadata(
        title=fields.pop("title"),
        author=fields.pop("author", None),
        ccli=fields.pop("ccli", None),
        key=fields.pop("key", None),
        tempo=fields.pop("tempo", None),
        tags=fields.pop("tags", None),
        extra=fields,
    )
    return SongContent(metadata=metadata, sections=parse_sections(body))


def parse_front_matter(markdown: str) -> tuple[dict[str, Any], str]:
    """Split *markdown* into ``(fields, body)``.

    Returns an empty dict and the whole text when there is no front-matter.
    """
    m = _FRONT_MATTER_RE.match(markdown)
    if not m:
        return {}, markdown

    fields: dict[str, Any] = {}
    for line in m.group(1).splitlines():
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            continue
        value = value.strip()
        fields[key] = value if key == "title" else coerce_value(value)
    return fields, m.group(2)


def coerce_value(value: str) -> Any:
    """Coerce a front-matter value: ``[a, b]`` -> list, numeric -> number."""
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1].strip()
        return [item.strip() for item in inner.split(",")] if inner else []
    if _INT_RE.match(value):
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)
    return value


def parse_sections(body: str) -> list[SongSection]:
    """Group *body* lines under ``# heading`` lines and number the headings.

    Text before the first heading is ignored.  Blank lines never end a
    section, and headings with no lines under them are dropped before
    numbering.
    """
    groups: list[tuple[str, list[str]]] = []
    for raw in body.splitlines():
        m = _HEADING_RE.match(raw.strip())
        if m:
            groups.append((m.group(1).strip(), []))
            continue
        line = raw.strip()
        if line and groups:
            groups[-1][1].append(line)

    numberer = SectionNumberer()
    sections: list[SongSection] = []
    for heading, lines in groups:
        if not lines:
            continue
        section_type, label = numberer.assign(heading)
        sections.append(SongSection(type=section_type, label=label, lines=lines))
    return sections


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_song(content: SongContent) -> str:
    """Return canonical markdown for *content*.

    The inverse of :func:`parse_song`: ``parse_song(format_song(c)) == c`` for
    any content that ``parse_song`` produced.  Output uses ``\\n`` line
    endings and ends with a single newline.
    """
    meta = content.metadata
    parts = ["---"]
    for key in _KNOWN_KEYS:
        value = getattr(meta, key)
        if value is not None:
            parts.append(_format_field(key, value))
    for key, value in meta.extra.items():
        if value is not None:
            parts.append(_format_field(key, value))
    parts.append("---")

    for section in content.sections:
        if not section.lines:
            continue
        parts.append("")  # blank line before every section
        parts.append(f"# {section.label}")
        parts.extend(section.lines)

    return "\n".join(parts) + "\n"


def _format_field(key: str, value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return f"{key}: [{', '.join(str(v) for v in value)}]"
    # Front-matter is line-oriented
    return f"{key}: {' '.join(str(value).splitlines()).strip()}"
