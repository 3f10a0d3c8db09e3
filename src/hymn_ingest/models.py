from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SectionType(str, Enum):
    VERSE = "verse"
    CHORUS = "chorus"
    BRIDGE = "bridge"
    PRE_CHORUS = "pre-chorus"
    TAG = "tag"
    INTRO = "intro"
    OUTRO = "outro"


@dataclass(frozen=True)
class SongSection:
    """One lyrical unit of a song.

    ``lines`` never contains blank strings; blank lines in the source are
    separators and are not stored.
    """

    type: SectionType
    label: str  # e.g. "Verse 1", "Chorus 1", "Intro", "Turnaround"
    lines: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SongMetadata:
    """Front-matter of a canonical markdown song."""

    title: str
    author: str | None = None
    ccli: int | str | None = None
    key: str | None = None
    tempo: int | float | str | None = None
    tags: list[str] | str | None = None
    extra: dict[str, Any] = field(default_factory=dict)  # any other key, in document order


@dataclass(frozen=True)
class SongContent:
    """Canonical representation of a song's lyrics, in source order."""

    metadata: SongMetadata
    sections: list[SongSection] = field(default_factory=list)


@dataclass
class RawSection:
    """A block of lyric lines grouped by an extractor, before normalization.

    ``heading`` is None for an unlabelled block (numbered as the next verse),
    a bare keyword such as "Chorus", or an explicit heading such as "Verse 2".
    """

    heading: str | None
    lines: list[str] = field(default_factory=list)


@dataclass
class RawSong:
    """Fields pulled out of one source page by an extractor."""

    title: str
    sections: list[RawSection]
    source_url: str
    author: str | None = None
    composer: str | None = None
    is_public_domain: bool = True
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ParsedSong:
    """A scraped, normalized song ready for import. ``source_url`` is the dedup key."""

    title: str
    lyrics: str  # canonical markdown
    source_url: str
    author: str | None = None
    composer: str | None = None
    is_public_domain: bool = True


@dataclass(frozen=True)
class ScrapeFailure:
    identifier: str
    url: str
    error: str


@dataclass
class ScrapeResult:
    succeeded: list[ParsedSong] = field(default_factory=list)
    failed: list[ScrapeFailure] = field(default_factory=list)


@dataclass(frozen=True)
class ImportFailure:
    title: str
    source_url: str
    message: str

    def __str__(self) -> str:
        return f"{self.title}: {self.message}"


@dataclass
class ImportResult:
    inserted: int = 0
    skipped: int = 0
    errors: list[ImportFailure] = field(default_factory=list)


@dataclass
class RunReport:
    """Outcome of one scrape + import run, as returned to the caller."""

    scraped: int
    inserted: int
    skipped: int
    failed: int
    failures: list[dict[str, str]] = field(default_factory=list)  # first N {url, error}

    def to_dict(self) -> dict[str, Any]:
        return {
            "scraped": self.scraped,
            "inserted": self.inserted,
            "skipped": self.skipped,
            "failed": self.failed,
            "failures": list(self.failures),
        }
