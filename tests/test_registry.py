import pytest

from hymn_ingest.exceptions import UnsupportedSourceError
from hymn_ingest.registry import get_source, source_names
from hymn_ingest.sources.hymnstogod import HymnsToGodAdapter
from hymn_ingest.sources.pateys import PateysAdapter
from hymn_ingest.sources.timeless_truths import TimelessTruthsAdapter


def test_source_names():
    assert source_names() == ["hymnstogod", "pateys", "timelesstruths"]


@pytest.mark.parametrize(
    "name, cls",
    [
        ("hymnstogod", HymnsToGodAdapter),
        ("pateys", PateysAdapter),
        ("timelesstruths", TimelessTruthsAdapter),
    ],
)
def test_get_source(name, cls):
    assert isinstance(get_source(name), cls)


def test_get_source_returns_fresh_instances():
    assert get_source("pateys") is not get_source("pateys")


def test_get_source_unknown_raises():
    with pytest.raises(UnsupportedSourceError, match="No source adapter named: hymnary"):
        get_source("hymnary")


def test_public_domain_filter_passed_through():
    assert get_source("timelesstruths").public_domain_only is True
    assert get_source("timelesstruths", public_domain_only=False).public_domain_only is False


def test_public_domain_filter_ignored_by_other_sources():
    assert not hasattr(get_source("pateys", public_domain_only=False), "public_domain_only")


@pytest.mark.parametrize("name", ["hymnstogod", "pateys", "timelesstruths"])
def test_sources_have_distinct_ids(name):
    source = get_source(name)
    assert source.source_id
    assert source.index_url.startswith("https://")
    assert source.delay > 0
