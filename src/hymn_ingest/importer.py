from collections.abc import Iterable
from typing import Any

import structlog

from .exceptions import StoreError
from .models import ImportFailure, ImportResult, ParsedSong
from .store import SongStore

log = structlog.get_logger(__name__)

DEFAULT_TAGS = ("hymn", "public-domain")


class SongImporter:
    """Dedup-aware, best-effort batch import of scraped songs.

    Existing source URLs are loaded once per call; each song is then checked
    against that in-memory set.  A rejected insert is recorded and the batch
    carries on.
    """

    def __init__(self, store: SongStore, tags: Iterable[str] = DEFAULT_TAGS):
        self.store = store
        self.tags = list(tags)

    def import_songs(self, songs: Iterable[ParsedSong], dry_run: bool = False) -> ImportResult:
        """Insert every song whose ``source_url`` is not already stored.

        With *dry_run* the songs are classified but nothing is inserted and
        ``inserted`` stays 0.  Raises StoreError only if the existing keys
        cannot be loaded.
        """
        known = set(self.store.existing_source_urls())
        result = ImportResult()

        for song in songs:
            if song.source_url in known:
                result.skipped += 1
                continue

            if dry_run:
                known.add(song.source_url)
                continue

            try:
                self.store.insert(self.to_record(song))
            except StoreError as exc:
                result.errors.append(ImportFailure(title=song.title, source_url=song.source_url, message=str(exc)))
                log.warning("insert_failed", url=song.source_url, title=song.title, error=str(exc))
                continue
            # A URL repeated within this batch is a duplicate too
            known.add(song.source_url)
            result.inserted += 1

        log.info(
            "import_finished",
            dry_run=dry_run,
            inserted=result.inserted,
            skipped=result.skipped,
            errors=len(result.errors),
        )
        return result

    def to_record(self, song: ParsedSong) -> dict[str, Any]:
        return {
            "church_id": None,  # global library
            "title": song.title,
            "author": song.author,
            "composer": song.composer,
            "lyrics": song.lyrics,
            "source_url": song.source_url,
            "is_public_domain": song.is_public_domain,
            "tags": list(self.tags),
        }
