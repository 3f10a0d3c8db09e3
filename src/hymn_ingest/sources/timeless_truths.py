"""Adapter for library.timelesstruths.org hymn pages (~1850 hymns).

Index: ``music/_/_/`` links every hymn as ``../../../music/<Slug>/``; the
item identifier is the slug.  Collection pages (hymnals) share the link form
and are excluded by name.

Page structure:
    <span class="current">Amazing Grace</span>
    <p class='author'>Words: <a href="...">John Newton</a>, 1779</p>
    <div class='verses'>
        <ol>
            <li>Amazing grace! how sweet the sound<br />...</li>
            <li>...</li>
        </ol>
    </div>
    <fieldset class="tuneinfo">
        <p class="scoretitle">...</p>
        <p data-editable="author">Music: <a href="...">Virginia Harmony</a></p>
    </fieldset>
    ... Public Domain ...

Verses carry no chorus markers, so a verse identical to the one before it is
taken to be a repeated chorus.
"""

import re

from bs4 import BeautifulSoup, Tag

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
)

BASE_URL = "https://library.timelesstruths.org"

# Collection pages linked with the same /music/<slug>/ form as hymns.
EXCLUDED_SLUGS = frozenset({
    "_",
    "Select_Hymns",
    "Evening_Light_Songs",
    "Echoes_from_Heaven_Hymnal",
    "The_Blue_Book",
    "Sing_unto_the_Lord",
})

_HYMN_LINK_RE = re.compile(r"/music/([A-Za-z0-9_]+)/$")
_LYRICS_SUFFIX_RE = re.compile(r"\s*>\s*Lyrics.*$")
_CHORUS_PREFIX_RE = re.compile(r"^(?:chorus|refrain):\s*", re.IGNORECASE)
_YEAR_RE = re.compile(r"\b(\d{4})\b")
_WORDS_LABEL_RE = re.compile(r"Words:\s*([^,\n]+)")
_PUBLIC_DOMAIN_RE = re.compile(r"Public Domain", re.IGNORECASE)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


class TimelessTruthsAdapter(SourceAdapter):
    """Adapter for library.timelesstruths.org hymns."""

    name = "timelesstruths"
    source_id = "library.timelesstruths.org"
    index_url = f"{BASE_URL}/music/_/_/"
    delay = 0.2
    timeout = 15.0

    def __init__(self, public_domain_only: bool = True):
        self.public_domain_only = public_domain_only

    def parse_index(self, html: str) -> list[str]:
        soup = BeautifulSoup(html, "html.parser")
        slugs: list[str] = []
        for link in soup.find_all("a", href=True):
            m = _HYMN_LINK_RE.search(link["href"].strip())
            if m and m.group(1) not in EXCLUDED_SLUGS and m.group(1) not in slugs:
                slugs.append(m.group(1))
        return slugs

    def item_url(self, identifier: str) -> str:
        return f"{BASE_URL}/music/{identifier}/"

    def parse_page(self, html: str, url: str) -> RawSong:
        soup = BeautifulSoup(html, "html.parser")

        blocks = first_of(_VERSE_STRATEGIES, soup)
        if not blocks:
            raise ParseError(url, "No verses found (tried div.verses, <pre>)")

        slug = url.rstrip("/").split("/")[-1]
        title = first_of(_TITLE_STRATEGIES, soup) or slug.replace("_", " ")
        author, year = _author_and_year(soup)

        raw = RawSong(
            title=title,
            author=author or _author_from_words_label(soup),
            composer=_composer(soup),
            sections=blocks_to_sections(blocks),
            source_url=url,
            is_public_domain=_is_public_domain(soup),
        )
        if year:
            raw.extra["author_year"] = year
        return raw

    def reject_reason(self, raw: RawSong) -> str | None:
        if self.public_domain_only and not raw.is_public_domain:
            return "Not public domain"
        return None


def blocks_to_sections(blocks: list[str]) -> list[RawSection]:
    """Turn verse blocks into sections, marking choruses.

    A block is a chorus when it starts with ``Chorus:``/``Refrain:`` or is
    identical to the block before it.  Everything else is an unlabelled
    verse, numbered later.
    """
    sections: list[RawSection] = []
    for i, block in enumerate(blocks):
        is_chorus = bool(_CHORUS_PREFIX_RE.match(block)) or (i > 0 and block == blocks[i - 1])
        text = _CHORUS_PREFIX_RE.sub("", block)
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        sections.append(RawSection(heading="Chorus" if is_chorus else None, lines=lines))
    return sections


# ---------------------------------------------------------------------------
# Title / credits
# ---------------------------------------------------------------------------


def _title_from_breadcrumb(soup: BeautifulSoup) -> str | None:
    tag = soup.find("span", class_="current")
    return clean_title(tag.get_text()) if tag else None


def _title_from_title_tag(soup: BeautifulSoup) -> str | None:
    tag = soup.find("title")
    if tag is None:
        return None
    text = decode_entities(tag.get_text()).split("|")[0]
    return clean_title(_LYRICS_SUFFIX_RE.sub("", text))


_TITLE_STRATEGIES = [_title_from_breadcrumb, _title_from_title_tag]


def _author_and_year(soup: BeautifulSoup) -> tuple[str | None, int | None]:
    p = soup.find("p", class_="author")
    if p is None:
        return None, None
    link = p.find("a")
    if link is None:
        return None, None
    author = normalize_space(decode_entities(link.get_text())) or None
    # The year follows the linked name: "<a>John Newton</a>, 1779"
    trailing = "".join(str(s) for s in link.next_siblings if isinstance(s, str))
    m = _YEAR_RE.search(trailing)
    return author, int(m.group(1)) if m else None


def _author_from_words_label(soup: BeautifulSoup) -> str | None:
    m = _WORDS_LABEL_RE.search(page_text(soup))
    return normalize_space(m.group(1)) if m else None


def _composer(soup: BeautifulSoup) -> str | None:
    fieldset = soup.find("fieldset", class_="tuneinfo")
    if fieldset is None:
        return None
    p = fieldset.find(_is_editable_author)
    link = p.find("a") if p else None
    if link is None:
        return None
    return normalize_space(decode_entities(link.get_text())) or None


def _is_editable_author(tag: Tag) -> bool:
    return tag.name == "p" and "author" in (tag.get("data-editable") or "")


def _is_public_domain(soup: BeautifulSoup) -> bool:
    if soup.find("a", href=re.compile(r"publicdomain/mark")):
        return True
    return bool(_PUBLIC_DOMAIN_RE.search(soup.get_text()))


# ---------------------------------------------------------------------------
# Verses
# ---------------------------------------------------------------------------


def _verses_from_list(soup: BeautifulSoup) -> list[str] | None:
    div = soup.find("div", class_="verses")
    if div is None:
        return None
    blocks = [_block_text(element_text(li)) for li in div.find_all("li")]
    return [b for b in blocks if b] or None


def _verses_from_pre(soup: BeautifulSoup) -> list[str] | None:
    pre = soup.find("pre")
    if pre is None:
        return None
    blocks = [_block_text(p) for p in _PARAGRAPH_SPLIT_RE.split(element_text(pre))]
    return [b for b in blocks if b] or None


def _block_text(text: str) -> str:
    return "\n".join(line.strip() for line in text.strip().splitlines() if line.strip())


_VERSE_STRATEGIES = [_verses_from_list, _verses_from_pre]
