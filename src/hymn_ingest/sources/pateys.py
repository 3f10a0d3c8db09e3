"""Adapter for the Pateys.nf.ca public domain hymn database (~325 hymns).

Index: ``cgi-bin/lyrics_pd.pl`` links every hymn with lyrics as
``/cgi-bin/lyrics.pl?font=regular&amp;hymnnumber=<n>``; the item identifier
is the hymn number.

Lyrics pages are plain CGI output: a ``<title>`` such as
``Lyrics for Hymn #12, "O God Our Help in Ages Past"`` and the lyrics either
in a ``<pre>`` block or as loose text with ``<br>`` breaks, each verse
starting with its number (``1 O God, our help in ages past``), followed by
navigation links.

A second page, ``cgi-bin/getnametune.pl?hymnnumbers=<n>``, carries the tune
name and meter; it is optional and fetched during enrichment.
"""

import re

import structlog
from bs4 import BeautifulSoup

from ..exceptions import FetchError, ParseError
from ..models import RawSection, RawSong
from .base import Fetch, SourceAdapter
from .utils import (
    clean_title,
    decode_entities,
    element_text,
    first_of,
    normalize_space,
    page_text,
    scan_lyrics,
    segment_lines,
)

log = structlog.get_logger(__name__)

BASE_URL = "https://www.pateys.nf.ca"

_HYMN_LINK_RE = re.compile(r"/cgi-bin/lyrics\.pl\?font=regular&(?:amp;)?hymnnumber=(\d+)", re.IGNORECASE)

_TITLE_PREFIXES = (
    re.compile(r"^Lyrics for Hymn #\d+,\s*", re.IGNORECASE),
    re.compile(r"^Hymn\s*#?\d+[:\s]*", re.IGNORECASE),
)

_SCAN_START_RE = re.compile(r"^[1-9]\.?\s")
_SCAN_STOP_RE = re.compile(r"^(?:search|database|home|back|click|©|see database|go to)", re.IGNORECASE)
_BODY_NOISE = ("script", "style", "nav", "header", "footer")

_TUNE_RE = re.compile(r"Tune name:\s*([^<]+)<", re.IGNORECASE)
_METER_RE = re.compile(r"--\s*(\d+\s+\d+\s+\d+\s+\d+(?:\s+[A-Z]+)?)\s*<a")


class PateysAdapter(SourceAdapter):
    """Adapter for pateys.nf.ca public domain hymns."""

    name = "pateys"
    source_id = "pateys.nf.ca"
    index_url = f"{BASE_URL}/cgi-bin/lyrics_pd.pl"
    delay = 0.15
    timeout = 15.0

    def parse_index(self, html: str) -> list[str]:
        numbers = {int(n) for n in _HYMN_LINK_RE.findall(html)}
        return [str(n) for n in sorted(numbers)]

    def item_url(self, identifier: str) -> str:
        return f"{BASE_URL}/cgi-bin/lyrics.pl?font=regular&hymnnumber={identifier}"

    def metadata_url(self, identifier: str) -> str:
        return f"{BASE_URL}/cgi-bin/getnametune.pl?hymnnumbers={identifier}"

    def parse_page(self, html: str, url: str) -> RawSong:
        soup = BeautifulSoup(html, "html.parser")

        sections = first_of(_LYRICS_STRATEGIES, soup)
        if not sections:
            raise ParseError(url, "No lyrics found (tried <pre>, page text)")

        title = first_of(_TITLE_STRATEGIES, soup) or f"Hymn {_hymn_number(url)}"
        return RawSong(title=title, sections=sections, source_url=url)

    def enrich(self, raw: RawSong, identifier: str, fetch: Fetch) -> None:
        """Add tune name (as composer) and meter from the database entry page."""
        url = self.metadata_url(identifier)
        try:
            html = fetch(url)
        except FetchError as exc:
            log.info("metadata_unavailable", source=self.name, url=url, error=str(exc))
            return

        tune, meter = parse_metadata_page(html)
        if tune:
            raw.composer = tune
            raw.extra["tune"] = tune
        if meter:
            raw.extra["meter"] = meter


def parse_metadata_page(html: str) -> tuple[str | None, str | None]:
    """Return ``(tune_name, meter)`` from a ``getnametune.pl`` page."""
    tune_match = _TUNE_RE.search(html)
    tune = normalize_space(decode_entities(tune_match.group(1))) if tune_match else None

    meter_match = _METER_RE.search(html)
    meter = normalize_space(meter_match.group(1)) if meter_match else None

    return tune or None, meter or None


def _hymn_number(url: str) -> str:
    m = re.search(r"hymnnumber=(\d+)", url)
    return m.group(1) if m else "?"


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------


def _title_from_title_tag(soup: BeautifulSoup) -> str | None:
    tag = soup.find("title")
    return clean_title(tag.get_text(), _TITLE_PREFIXES) if tag else None


def _title_from_heading(soup: BeautifulSoup) -> str | None:
    tag = soup.find(["h1", "h2"])
    return clean_title(tag.get_text(), _TITLE_PREFIXES) if tag else None


_TITLE_STRATEGIES = [_title_from_title_tag, _title_from_heading]


# ---------------------------------------------------------------------------
# Lyrics
# ---------------------------------------------------------------------------


def _lyrics_from_pre(soup: BeautifulSoup) -> list[RawSection] | None:
    pre = soup.find("pre")
    if pre is None:
        return None
    return _usable(segment_lines(element_text(pre), bare_ordinals=True))


def _lyrics_from_page_text(soup: BeautifulSoup) -> list[RawSection] | None:
    lyrics = scan_lyrics(page_text(soup, drop=_BODY_NOISE), _SCAN_START_RE, _SCAN_STOP_RE)
    return _usable(segment_lines(lyrics, bare_ordinals=True)) if lyrics else None


def _usable(sections: list[RawSection]) -> list[RawSection] | None:
    return sections if any(s.lines for s in sections) else None


_LYRICS_STRATEGIES = [_lyrics_from_pre, _lyrics_from_page_text]
