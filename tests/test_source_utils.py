import re
from unittest.mock import MagicMock

import pytest
from bs4 import BeautifulSoup

from hymn_ingest.models import RawSection
from hymn_ingest.sources.utils import (
    clean_title,
    decode_entities,
    element_text,
    first_of,
    normalize_space,
    page_text,
    parse_section_marker,
    scan_lyrics,
    segment_lines,
)

# ---------------------------------------------------------------------------
# decode_entities / normalize_space
# ---------------------------------------------------------------------------


def test_decode_named_entities():
    assert decode_entities("Faith &amp; Hope &quot;Live&quot;") == 'Faith & Hope "Live"'


def test_decode_numeric_entities():
    assert decode_entities("&#8217;Twas &#x2019;tis") == "’Twas ’tis"


def test_decode_nbsp_becomes_space():
    assert decode_entities("a&nbsp;b") == "a b"


def test_normalize_space():
    assert normalize_space("  a \n\t b  ") == "a b"


# ---------------------------------------------------------------------------
# element_text / page_text
# ---------------------------------------------------------------------------


def _soup(markup):
    return BeautifulSoup(markup, "html.parser")


def test_element_text_br_is_single_newline():
    p = _soup("<p>Line one<br>\nLine two<br/>Line three</p>").p
    assert element_text(p).strip() == "Line one\nLine two\nLine three"


def test_element_text_paragraphs_are_blank_line_separated():
    div = _soup("<div><p>a</p><p>b</p></div>").div
    assert element_text(div).strip() == "a\n\nb"


def test_element_text_leaves_tree_untouched():
    soup = _soup("<p>a<br>b</p>")
    element_text(soup.p)
    assert soup.find("br") is not None


def test_page_text_drops_scripts():
    soup = _soup("<html><body><script>var x = 1;</script><p>Hymn</p></body></html>")
    text = page_text(soup)
    assert "Hymn" in text
    assert "var x" not in text


def test_page_text_drops_custom_elements():
    soup = _soup("<body><nav>Home</nav><p>Hymn</p></body>")
    assert "Home" not in page_text(soup, drop=("nav",))


# ---------------------------------------------------------------------------
# first_of
# ---------------------------------------------------------------------------


def test_first_of_returns_first_non_empty():
    assert first_of([lambda x: None, lambda x: "", lambda x: x * 2], 4) == 8


def test_first_of_stops_after_success():
    later = MagicMock(return_value="late")
    assert first_of([lambda: "early", later]) == "early"
    later.assert_not_called()


def test_first_of_all_empty_returns_none():
    assert first_of([lambda: None, lambda: []]) is None


# ---------------------------------------------------------------------------
# clean_title
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Amazing Grace - Hymns to God", "Amazing Grace"),
        ("Abide with Me | Timeless Truths", "Abide with Me"),
        ("Abide with Me|Timeless Truths", "Abide with Me"),
        ('"Rock of Ages"', "Rock of Ages"),
        ("  Holy,\n Holy,  Holy  ", "Holy, Holy, Holy"),
        ("Faith &amp; Hope", "Faith & Hope"),
        ("Well-Spring of Joy", "Well-Spring of Joy"),
    ],
)
def test_clean_title(raw, expected):
    assert clean_title(raw) == expected


def test_clean_title_prefixes():
    prefix = re.compile(r"^Hymn #\d+:\s*")
    assert clean_title("Hymn #12: O God Our Help", [prefix]) == "O God Our Help"


# ---------------------------------------------------------------------------
# parse_section_marker
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "line, expected",
    [
        ("1.", ("Verse 1", "")),
        ("2)", ("Verse 2", "")),
        ("3. When peace like a river", ("Verse 3", "When peace like a river")),
        ("Verse 4", ("Verse 4", "")),
        ("verse 2: Text here", ("Verse 2", "Text here")),
        ("II.", ("Verse 2", "")),
        ("iv)", ("Verse 4", "")),
        ("Chorus", ("Chorus", "")),
        ("Refrain:", ("Chorus", "")),
        ("Refrain: It is well", ("Chorus", "It is well")),
        ("Bridge", ("Bridge", "")),
    ],
)
def test_parse_section_marker(line, expected):
    assert parse_section_marker(line) == expected


@pytest.mark.parametrize(
    "line",
    [
        "",
        "Amazing grace, how sweet the sound",
        "2 When we've been there ten thousand years",
        "I once was lost, but now am found",
        "Chorus of angels sing",
    ],
)
def test_parse_section_marker_plain_lyrics(line):
    assert parse_section_marker(line) is None


def test_parse_section_marker_bare_ordinal_opt_in():
    line = "2 When we've been there ten thousand years"
    assert parse_section_marker(line, bare_ordinals=True) == ("Verse 2", "When we've been there ten thousand years")


# ---------------------------------------------------------------------------
# segment_lines
# ---------------------------------------------------------------------------


def test_segment_paragraphs_without_markers():
    sections = segment_lines("a\nb\n\n\nc\n")
    assert sections == [RawSection(heading=None, lines=["a", "b"]), RawSection(heading=None, lines=["c"])]


def test_segment_markers_delimit_and_ignore_blank_lines():
    sections = segment_lines("1. a\nb\n\nc\n2.\nd\n")
    assert sections == [
        RawSection(heading="Verse 1", lines=["a", "b", "c"]),
        RawSection(heading="Verse 2", lines=["d"]),
    ]


def test_segment_refrain_marker_takes_following_lines():
    sections = segment_lines("Refrain\n\nThis is my story")
    assert sections == [RawSection(heading="Chorus", lines=["This is my story"])]


def test_segment_lone_marker_is_empty_section():
    assert segment_lines("Refrain") == [RawSection(heading="Chorus", lines=[])]


def test_segment_text_before_first_marker_is_unlabelled():
    sections = segment_lines("intro line\n1. a\n")
    assert sections[0] == RawSection(heading=None, lines=["intro line"])
    assert sections[1].heading == "Verse 1"


def test_segment_bare_ordinals():
    sections = segment_lines("1 O God, our help\nOur hope\n2 Under the shadow\n", bare_ordinals=True)
    assert [s.heading for s in sections] == ["Verse 1", "Verse 2"]
    assert sections[0].lines == ["O God, our help", "Our hope"]


def test_segment_empty_text():
    assert segment_lines("") == []


# ---------------------------------------------------------------------------
# scan_lyrics
# ---------------------------------------------------------------------------

_START = re.compile(r"^1\.")
_STOP = re.compile(r"copyright", re.IGNORECASE)


def test_scan_lyrics_bounds():
    text = "Site header\n1. a\nb\n\n\n\n2. c\nCopyright 2024\nfooter"
    assert scan_lyrics(text, _START, _STOP) == "1. a\nb\n\n2. c"


def test_scan_lyrics_no_start_is_empty():
    assert scan_lyrics("nothing here\nCopyright", _START, _STOP) == ""


def test_scan_lyrics_stop_before_start_is_ignored():
    text = "Copyright notice\n1. a\n"
    assert scan_lyrics(text, _START, _STOP) == "1. a"
