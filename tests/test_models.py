import dataclasses

import pytest

from hymn_ingest.models import (
    ImportFailure,
    ImportResult,
    ParsedSong,
    RawSection,
    RawSong,
    RunReport,
    ScrapeResult,
    SectionType,
    SongContent,
    SongMetadata,
    SongSection,
)

# ---------------------------------------------------------------------------
# SectionType
# ---------------------------------------------------------------------------


def test_section_type_values():
    assert SectionType.VERSE.value == "verse"
    assert SectionType.PRE_CHORUS.value == "pre-chorus"
    assert SectionType("outro") is SectionType.OUTRO


def test_section_type_compares_as_string():
    assert SectionType.CHORUS == "chorus"


# ---------------------------------------------------------------------------
# SongSection / SongContent
# ---------------------------------------------------------------------------


def test_song_section_defaults_to_no_lines():
    section = SongSection(type=SectionType.VERSE, label="Verse 1")
    assert section.lines == []


def test_song_section_is_frozen():
    section = SongSection(type=SectionType.VERSE, label="Verse 1", lines=["a"])
    with pytest.raises(dataclasses.FrozenInstanceError):
        section.label = "Verse 2"


def test_song_content_equality_is_structural():
    def make():
        return SongContent(
            metadata=SongMetadata(title="Abide with Me", tags=["hymn"]),
            sections=[SongSection(type=SectionType.VERSE, label="Verse 1", lines=["Abide with me"])],
        )

    assert make() == make()


def test_song_metadata_extra_defaults_empty():
    assert SongMetadata(title="X").extra == {}


# ---------------------------------------------------------------------------
# RawSong / ParsedSong
# ---------------------------------------------------------------------------


def test_raw_song_defaults():
    raw = RawSong(title="X", sections=[RawSection(heading=None, lines=["a"])], source_url="https://e/x")
    assert raw.author is None
    assert raw.composer is None
    assert raw.is_public_domain is True
    assert raw.extra == {}


def test_raw_song_extra_not_shared():
    a = RawSong(title="A", sections=[], source_url="a")
    b = RawSong(title="B", sections=[], source_url="b")
    a.extra["tune"] = "ST. ANNE"
    assert b.extra == {}


def test_parsed_song_defaults_public_domain():
    song = ParsedSong(title="X", lyrics="---\ntitle: X\n---\n", source_url="https://e/x")
    assert song.is_public_domain is True


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


def test_scrape_result_starts_empty():
    result = ScrapeResult()
    assert result.succeeded == []
    assert result.failed == []


def test_import_result_starts_at_zero():
    result = ImportResult()
    assert (result.inserted, result.skipped, result.errors) == (0, 0, [])


def test_import_failure_str_names_title():
    failure = ImportFailure(title="Rock of Ages", source_url="https://e/1", message="duplicate key")
    assert str(failure) == "Rock of Ages: duplicate key"


def test_run_report_to_dict():
    report = RunReport(
        scraped=3,
        inserted=2,
        skipped=1,
        failed=1,
        failures=[{"url": "https://e/4", "error": "HTTP 404 fetching https://e/4"}],
    )
    assert report.to_dict() == {
        "scraped": 3,
        "inserted": 2,
        "skipped": 1,
        "failed": 1,
        "failures": [{"url": "https://e/4", "error": "HTTP 404 fetching https://e/4"}],
    }


def test_run_report_to_dict_copies_failures():
    report = RunReport(scraped=0, inserted=0, skipped=0, failed=0)
    report.to_dict()["failures"].append({"url": "x", "error": "y"})
    assert report.failures == []
