"""Adapter for HymnsToGod.org public domain hymn pages.

Index: ``Hymns-PD/ZZ-CompletePDHymnList.html`` links every hymn as
``./<Letter>-Hymns/<Name>.html``; the item identifier is the full page URL.

Page structure:
    <title>Amazing Grace - Hymns to God</title>
    <table>
        <tr><th>Lyrics:</th><td><a href="...">John Newton</a></td></tr>
        <tr><th>Music:</th><td><a href="...">Virginia Harmony</a></td></tr>
    </table>
    <div ID="Lyrics">
        <p class="w3-center">Amazing Grace</p>      (title, skipped)
        <p class="w3-center">John Newton</p>        (credit, skipped)
        <p>Amazing grace! How sweet the sound<br>...</p>
        <p>Refrain</p>                               (marks the next block)
        <p>...</p>
    </div>

Older pages have no ``Lyrics`` div; the lyrics then come from a ``<pre>``
block or, failing that, from scanning the page text between the first verse
ordinal and the copyright footer.
"""

import re
from functools import partial
from urllib.parse import unquote

from bs4 import BeautifulSoup

from ..exceptions import ParseError
from ..models import RawSection, RawSong
from .base import SourceAdapter
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

BASE_URL = "https://hymnstogod.org/Hymns-PD"

_HYMN_LINK_RE = re.compile(r"^\./([A-Z]-Hymns/[^\"]+\.html)$", re.IGNORECASE)
_BY_AUTHOR_RE = re.compile(r"\bby\s+([A-Z][a-z]+(?:\s+[A-Z]\.?)?\s+[A-Z][a-z]+)")
_SCAN_START_RE = re.compile(r"^[1IVX][.)]|^verse\s*\d", re.IGNORECASE)
_SCAN_STOP_RE = re.compile(r"copyright|all rights|hymns to god|page design", re.IGNORECASE)


class HymnsToGodAdapter(SourceAdapter):
    """Adapter for hymnstogod.org public domain hymns."""

    name = "hymnstogod"
    source_id = "hymnstogod.org"
    index_url = f"{BASE_URL}/ZZ-CompletePDHymnList.html"
    delay = 0.1
    timeout = 10.0

    def parse_index(self, html: str) -> list[str]:
        soup = BeautifulSoup(html, "html.parser")
        urls: list[str] = []
        for link in soup.find_all("a", href=True):
            m = _HYMN_LINK_RE.match(link["href"].strip())
            if m:
                url = f"{BASE_URL}/{m.group(1)}"
                if url not in urls:
                    urls.append(url)
        return urls

    def item_url(self, identifier: str) -> str:
        return identifier

    def parse_page(self, html: str, url: str) -> RawSong:
        soup = BeautifulSoup(html, "html.parser")

        sections = first_of(_LYRICS_STRATEGIES, soup)
        if not sections:
            raise ParseError(url, "No lyrics found (tried Lyrics div, <pre>, page text)")

        title = first_of(_TITLE_STRATEGIES, soup) or _title_from_url(url)
        return RawSong(
            title=title,
            author=first_of(_AUTHOR_STRATEGIES, soup),
            composer=first_of(_COMPOSER_STRATEGIES, soup),
            sections=sections,
            source_url=url,
        )


# ---------------------------------------------------------------------------
# Title / credits
# ---------------------------------------------------------------------------


def _title_from_title_tag(soup: BeautifulSoup) -> str | None:
    tag = soup.find("title")
    return clean_title(tag.get_text()) if tag else None


def _title_from_h1(soup: BeautifulSoup) -> str | None:
    tag = soup.find("h1")
    return clean_title(tag.get_text()) if tag else None


def _title_from_url(url: str) -> str:
    """Derive a title from the page file name as a last-resort fallback."""
    slug = unquote(url.rstrip("/").split("/")[-1]).removesuffix(".html")
    return slug.replace("-", " ").replace("_", " ").strip() or "Unknown Hymn"


def _credit_cell(soup: BeautifulSoup, label: str) -> str | None:
    """Return the name in the ``<td>`` after a ``<th>Label:</th>`` cell."""
    for th in soup.find_all("th"):
        if th.get_text(strip=True).rstrip(":").lower() != label.lower():
            continue
        td = th.find_next_sibling("td")
        if td is None:
            return None
        link = td.find("a")
        name = normalize_space(decode_entities((link or td).get_text()))
        return name or None
    return None


def _author_by_phrase(soup: BeautifulSoup) -> str | None:
    m = _BY_AUTHOR_RE.search(page_text(soup))
    return m.group(1) if m else None


_TITLE_STRATEGIES = [_title_from_title_tag, _title_from_h1]

_AUTHOR_STRATEGIES = [
    partial(_credit_cell, label="Lyrics"),
    partial(_credit_cell, label="Words"),
    _author_by_phrase,
]

_COMPOSER_STRATEGIES = [
    partial(_credit_cell, label="Music"),
    partial(_credit_cell, label="Tune"),
]


# ---------------------------------------------------------------------------
# Lyrics
# ---------------------------------------------------------------------------


def _lyrics_from_div(soup: BeautifulSoup) -> list[RawSection] | None:
    """Each non-centered ``<p>`` in the Lyrics div is one block."""
    div = soup.find("div", id=re.compile(r"^lyrics$", re.IGNORECASE))
    if div is None:
        return None

    sections: list[RawSection] = []
    for p in div.find_all("p"):
        if "w3-center" in (p.get("class") or []):
            continue
        text = element_text(p).strip()
        if text:
            sections.extend(segment_lines(text))
    return _usable(sections)


def _lyrics_from_pre(soup: BeautifulSoup) -> list[RawSection] | None:
    pre = soup.find("pre")
    if pre is None:
        return None
    return _usable(segment_lines(element_text(pre)))


def _lyrics_from_page_text(soup: BeautifulSoup) -> list[RawSection] | None:
    lyrics = scan_lyrics(page_text(soup), _SCAN_START_RE, _SCAN_STOP_RE)
    return _usable(segment_lines(lyrics)) if lyrics else None


def _usable(sections: list[RawSection]) -> list[RawSection] | None:
    return sections if any(s.lines for s in sections) else None


_LYRICS_STRATEGIES = [_lyrics_from_div, _lyrics_from_pre, _lyrics_from_page_text]
