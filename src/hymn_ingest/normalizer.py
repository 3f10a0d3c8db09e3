"""Raw extracted sections -> canonical markdown.

Extractors group lyric lines into :class:`~hymn_ingest.models.RawSection`
blocks; this module labels them with the shared auto-numbering rule, folds
lone chorus markers into the block that follows, and renders the result with
:func:`~hymn_ingest.markdown.format_song`.  Identical input always produces
byte-identical output.
"""

from typing import Any

from .markdown import format_song
from .models import RawSection, SectionType, SongContent, SongMetadata, SongSection
from .sections import SectionNumberer, classify_heading


def normalize(
    sections: list[RawSection],
    *,
    title: str,
    source: str,
    source_url: str,
    author: str | None = None,
    composer: str | None = None,
    extra: dict[str, Any] | None = None,
) -> str:
    """Return canonical markdown for an extracted song."""
    content = build_content(
        sections,
        title=title,
        source=source,
        source_url=source_url,
        author=author,
        composer=composer,
        extra=extra,
    )
    return format_song(content)


def build_content(
    sections: list[RawSection],
    *,
    title: str,
    source: str,
    source_url: str,
    author: str | None = None,
    composer: str | None = None,
    extra: dict[str, Any] | None = None,
) -> SongContent:
    """Return the :class:`~hymn_ingest.models.SongContent` that :func:`normalize` renders."""
    fields: dict[str, Any] = {}
    if composer:
        fields["composer"] = composer
    for key, value in (extra or {}).items():
        if value is not None and value != "":
            fields[key] = value
    fields["source"] = source
    fields["source_url"] = source_url

    metadata = SongMetadata(title=title, author=author or None, extra=fields)
    return SongContent(metadata=metadata, sections=label_sections(sections))


def label_sections(sections: list[RawSection]) -> list[SongSection]:
    """Number and label raw sections, dropping any that end up empty."""
    numberer = SectionNumberer()
    labelled: list[SongSection] = []
    for raw in merge_chorus_markers(sections):
        lines = [line.strip() for line in raw.lines if line.strip()]
        if not lines:
            continue
        section_type, label = numberer.assign(raw.heading)
        labelled.append(SongSection(type=section_type, label=label, lines=lines))
    return labelled


def merge_chorus_markers(sections: list[RawSection]) -> list[RawSection]:
    """Fold an empty chorus heading into the unlabelled block right after it.

    ``[Chorus: (no lines)] [None: lines]`` becomes ``[Chorus: lines]``.  An
    empty chorus heading followed by anything else is left alone and is
    dropped later as an empty section.
    """
    merged: list[RawSection] = []
    pending: RawSection | None = None
    for raw in sections:
        if pending is not None:
            if raw.heading is None and _has_lines(raw):
                merged.append(RawSection(heading=pending.heading, lines=list(raw.lines)))
                pending = None
                continue
            merged.append(pending)
            pending = None

        if _is_chorus_marker(raw):
            pending = raw
        else:
            merged.append(raw)

    if pending is not None:
        merged.append(pending)
    return merged


def _has_lines(raw: RawSection) -> bool:
    return any(line.strip() for line in raw.lines)


def _is_chorus_marker(raw: RawSection) -> bool:
    if raw.heading is None or _has_lines(raw):
        return False
    return classify_heading(raw.heading).type == SectionType.CHORUS
