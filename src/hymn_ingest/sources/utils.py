"""Shared extraction utilities used by all source adapters.

  1. decode_entities()     - named, decimal and hex character references
  2. element_text()        - HTML element -> text with ``<br>``/``<p>`` line breaks
  3. first_of()            - ordered fallback chain, first non-empty result wins
  4. clean_title()         - strip site-name suffixes, hymn-number prefixes, quotes
  5. parse_section_marker() - "1.", "II.", "Verse 3", "Refrain:" -> heading
  6. segment_lines()       - raw lyric text -> list[RawSection]
  7. scan_lyrics()         - bounded line scan for pages with no lyric container
"""

import html
import re
from collections.abc import Callable, Iterable
from typing import TypeVar

from bs4 import BeautifulSoup, NavigableString, Tag

from ..models import RawSection

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Regexes
# ---------------------------------------------------------------------------

# "1." / "2)" alone on a line
_ORDINAL_ALONE_RE = re.compile(r"^(\d{1,2})[.)]$")

# "1. Amazing grace..." - ordinal with punctuation, then the first lyric line
_ORDINAL_INLINE_RE = re.compile(r"^(\d{1,2})[.)]\s+(\S.*)$")

# "1 Amazing grace..." - bare number then text (Pateys style, opt-in)
_ORDINAL_BARE_RE = re.compile(r"^(\d{1,2})\s+(\S.*)$")

# "Verse 3", "verse 3:", "Verse 3. Text"
_VERSE_LABEL_RE = re.compile(r"^verse\s*(\d+)\s*[.:)]?\s*(.*)$", re.IGNORECASE)

# "I." ... "X)" alone on a line
_ROMAN_RE = re.compile(r"^(I{1,3}|IV|V|VI{0,3}|IX|X)[.)]$", re.IGNORECASE)

_CHORUS_RE = re.compile(r"^(?:chorus|refrain)[:.\s]*$", re.IGNORECASE)
_CHORUS_INLINE_RE = re.compile(r"^(?:chorus|refrain)\s*[:.]\s*(\S.*)$", re.IGNORECASE)
_BRIDGE_RE = re.compile(r"^bridge[:.\s]*$", re.IGNORECASE)

ROMAN_NUMERALS = {
    "I": 1, "II": 2, "III": 3, "IV": 4, "V": 5,
    "VI": 6, "VII": 7, "VIII": 8, "IX": 9, "X": 10,
}

# Trailing " - Site Name" / " | Site Name" / "|Site Name"
_TITLE_SUFFIX_RE = re.compile(r"(?:\s+[-–—]\s+|\s*\|).*$")
_QUOTED_RE = re.compile(r"^[\"'“‘](.*)[\"'”’]$")


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def decode_entities(text: str) -> str:
    """Decode HTML character references and turn non-breaking spaces into spaces."""
    return html.unescape(text).replace("\xa0", " ")


def normalize_space(text: str) -> str:
    return " ".join(text.split())


def element_text(element: Tag) -> str:
    """Return the text of *element* with ``<br>`` as newlines and ``</p>`` as blank lines.

    Works on a copy so the caller's tree is left untouched.  A source newline
    right after a ``<br>`` is dropped, so ``line<br>\\nline`` stays one break.
    """
    fragment = BeautifulSoup(str(element), "html.parser")
    for br in fragment.find_all("br"):
        following = br.next_sibling
        if isinstance(following, NavigableString) and following.startswith(("\n", "\r\n")):
            following.replace_with(following.lstrip("\r\n"))
        br.replace_with("\n")
    for p in fragment.find_all("p"):
        p.append("\n\n")
    return decode_entities(fragment.get_text())


def page_text(soup: BeautifulSoup, drop: Iterable[str] = ("script", "style")) -> str:
    """Return the ``<body>`` text of a page with the *drop* elements removed."""
    body = soup.body or soup
    fragment = BeautifulSoup(str(body), "html.parser")
    for element in fragment.find_all(list(drop)):
        element.decompose()
    return element_text(fragment)


def first_of(strategies: Iterable[Callable[..., T | None]], *args) -> T | None:
    """Try each strategy in order and return the first non-empty result.

    Later strategies are not called once one succeeds.
    """
    for strategy in strategies:
        result = strategy(*args)
        if result:
            return result
    return None


def clean_title(raw: str, prefixes: Iterable[re.Pattern] = ()) -> str:
    """Clean a page title: decode, drop *prefixes*, site-name suffix and quotes."""
    title = normalize_space(decode_entities(raw))
    for pattern in prefixes:
        title = pattern.sub("", title)
    title = _TITLE_SUFFIX_RE.sub("", title).strip()
    m = _QUOTED_RE.match(title)
    if m:
        title = m.group(1).strip()
    return title


# ---------------------------------------------------------------------------
# Lyric segmentation
# ---------------------------------------------------------------------------


def parse_section_marker(line: str, bare_ordinals: bool = False) -> tuple[str, str] | None:
    """Return ``(heading, remainder)`` if *line* opens a new section.

    *remainder* is lyric text that followed the marker on the same line
    (empty when the marker stands alone).  With *bare_ordinals*, a leading
    number with no punctuation (``"2 When we've been there"``) also counts.
    """
    stripped = line.strip()
    if not stripped:
        return None

    m = _ORDINAL_ALONE_RE.match(stripped)
    if m:
        return f"Verse {int(m.group(1))}", ""

    m = _ORDINAL_INLINE_RE.match(stripped)
    if m:
        return f"Verse {int(m.group(1))}", m.group(2).strip()

    m = _VERSE_LABEL_RE.match(stripped)
    if m:
        return f"Verse {int(m.group(1))}", m.group(2).strip()

    m = _ROMAN_RE.match(stripped)
    if m:
        return f"Verse {ROMAN_NUMERALS[m.group(1).upper()]}", ""

    if _CHORUS_RE.match(stripped):
        return "Chorus", ""

    m = _CHORUS_INLINE_RE.match(stripped)
    if m:
        return "Chorus", m.group(1).strip()

    if _BRIDGE_RE.match(stripped):
        return "Bridge", ""

    if bare_ordinals:
        m = _ORDINAL_BARE_RE.match(stripped)
        if m:
            return f"Verse {int(m.group(1))}", m.group(2).strip()

    return None


def segment_lines(text: str, bare_ordinals: bool = False) -> list[RawSection]:
    """Group raw lyric text into :class:`~hymn_ingest.models.RawSection` blocks.

    When the text carries any section marker, markers alone delimit sections
    and blank lines are ignored.  Otherwise every blank-line separated
    paragraph becomes an unlabelled block.  A marker with nothing under it
    (e.g. a ``Refrain`` paragraph on its own) yields an empty section that the
    normalizer folds into the next block.
    """
    lines = text.splitlines()
    explicit = any(parse_section_marker(line, bare_ordinals) for line in lines)

    sections: list[RawSection] = []
    current: RawSection | None = None

    for line in lines:
        marker = parse_section_marker(line, bare_ordinals)
        if marker:
            if current is not None:
                sections.append(current)
            heading, rest = marker
            current = RawSection(heading=heading, lines=[rest] if rest else [])
            continue

        stripped = line.strip()
        if not stripped:
            if not explicit and current is not None and current.lines:
                sections.append(current)
                current = None
            continue

        if current is None:
            current = RawSection(heading=None)
        current.lines.append(stripped)

    if current is not None:
        sections.append(current)

    return sections


def scan_lyrics(text: str, start: re.Pattern, stop: re.Pattern) -> str:
    """Return the lines of *text* from the first *start* match up to a *stop* match.

    Used when a page has no lyric container: capture begins at the first
    line matching *start* (usually a verse ordinal) and ends before the first
    later line matching *stop* (copyright or navigation text).  Runs of blank
    lines collapse to one.
    """
    captured: list[str] = []
    in_lyrics = False
    last_blank = False

    for line in text.splitlines():
        stripped = line.strip()
        if not in_lyrics and start.search(stripped):
            in_lyrics = True
        if not in_lyrics:
            continue
        if stop.search(stripped):
            break
        if not stripped:
            if not last_blank:
                captured.append("")
            last_blank = True
            continue
        captured.append(stripped)
        last_blank = False

    return "\n".join(captured).strip()
