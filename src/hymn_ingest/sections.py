"""Section heading classification and auto-numbering.

Shared by the normalizer (which emits headings) and the markdown parser
(which reads them back), so both directions label sections identically.

Heading forms
-------------

+---------------------------+-----------------+----------------------------+
| Heading                   | Type            | Label                      |
+===========================+=================+============================+
| ``Verse``, ``v``          | verse           | ``Verse N`` (next unused)  |
+---------------------------+-----------------+----------------------------+
| ``Verse 2``, ``V2``       | verse           | as written; baseline >= 2  |
+---------------------------+-----------------+----------------------------+
| ``Intro``, ``i``          | intro           | ``Intro`` (never numbered) |
+---------------------------+-----------------+----------------------------+
| ``Chorus (repeat)``       | chorus          | as written                 |
+---------------------------+-----------------+----------------------------+
| ``Turnaround``            | verse           | as written                 |
+---------------------------+-----------------+----------------------------+
"""

import re
from dataclasses import dataclass
from types import MappingProxyType

from .models import SectionType

# Keyword (lowercase) -> type.  Multi-word and hyphenated forms come first so
# the alternation below prefers them.
KEYWORDS = MappingProxyType({
    "pre-chorus": SectionType.PRE_CHORUS,
    "pre chorus": SectionType.PRE_CHORUS,
    "pc": SectionType.PRE_CHORUS,
    "verse": SectionType.VERSE,
    "v": SectionType.VERSE,
    "chorus": SectionType.CHORUS,
    "c": SectionType.CHORUS,
    "bridge": SectionType.BRIDGE,
    "b": SectionType.BRIDGE,
    "tag": SectionType.TAG,
    "t": SectionType.TAG,
    "intro": SectionType.INTRO,
    "i": SectionType.INTRO,
    "outro": SectionType.OUTRO,
    "o": SectionType.OUTRO,
})

DISPLAY_NAMES = MappingProxyType({
    SectionType.VERSE: "Verse",
    SectionType.CHORUS: "Chorus",
    SectionType.BRIDGE: "Bridge",
    SectionType.PRE_CHORUS: "Pre-Chorus",
    SectionType.TAG: "Tag",
    SectionType.INTRO: "Intro",
    SectionType.OUTRO: "Outro",
})

# Types that receive a sequential number when written bare.
NUMBERED_TYPES = frozenset({
    SectionType.VERSE,
    SectionType.CHORUS,
    SectionType.BRIDGE,
    SectionType.PRE_CHORUS,
    SectionType.TAG,
})

_KEYWORD_PAT = "|".join(re.escape(k) for k in KEYWORDS)

# Whole heading is a keyword, optionally followed by a number: "Verse", "V2", "Pre Chorus 1"
_FULL_HEADING_RE = re.compile(rf"^(?P<keyword>{_KEYWORD_PAT})\s*(?P<number>\d+)?$", re.IGNORECASE)

# Heading starts with a full keyword word: "Chorus (repeat)", "Tag line"
_PREFIX_HEADING_RE = re.compile(
    r"^(?P<keyword>pre-chorus|pre chorus|verse|chorus|bridge|tag|intro|outro)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Heading:
    """A classified section heading."""

    text: str  # heading as written, trailing colon removed
    type: SectionType
    number: int | None = None
    bare: bool = False  # the heading was a keyword with nothing else


def clean_heading(text: str) -> str:
    return text.strip().rstrip(":").strip()


def classify_heading(text: str) -> Heading:
    """Classify a heading by case-insensitive match against the keyword table."""
    cleaned = clean_heading(text)

    m = _FULL_HEADING_RE.match(cleaned)
    if m:
        section_type = KEYWORDS[m.group("keyword").lower()]
        number = m.group("number")
        if number is None:
            return Heading(text=cleaned, type=section_type, bare=True)
        return Heading(text=cleaned, type=section_type, number=int(number))

    m = _PREFIX_HEADING_RE.match(cleaned)
    if m:
        return Heading(text=cleaned, type=KEYWORDS[m.group("keyword").lower()])

    # Freeform: "Turnaround", "Interlude"
    return Heading(text=cleaned, type=SectionType.VERSE)


class SectionNumberer:
    """Assigns labels to a song's headings in order.

    Counters are kept per type.  A bare numbered-type keyword takes the next
    unused number; an explicit number is kept as written and raises the
    baseline so a later bare heading continues after it.  Use one instance
    per song.
    """

    def __init__(self):
        self._counts: dict[SectionType, int] = {}

    def assign(self, heading: str | None) -> tuple[SectionType, str]:
        """Return ``(type, label)`` for *heading*; None or empty means a bare verse."""
        if heading is None or not clean_heading(heading):
            h = Heading(text="Verse", type=SectionType.VERSE, bare=True)
        else:
            h = classify_heading(heading)

        if h.bare:
            if h.type in NUMBERED_TYPES:
                n = self._counts.get(h.type, 0) + 1
                self._counts[h.type] = n
                return h.type, f"{DISPLAY_NAMES[h.type]} {n}"
            return h.type, DISPLAY_NAMES[h.type]

        if h.number is not None:
            self._counts[h.type] = max(self._counts.get(h.type, 0), h.number)

        return h.type, h.text
