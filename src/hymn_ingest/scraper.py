"""Scrape orchestrator: discover -> iterate -> throttle, one item at a time.

Only a failed index fetch aborts a run (:class:`IndexFetchError`).  Every
per-item problem (fetch error, timeout, unparseable page, rejected item) is
recorded once in :attr:`ScrapeResult.failed` and the run moves on; there are
no retries.
"""

import time
from collections.abc import Callable

import structlog

from .exceptions import FetchError, IndexFetchError
from .models import ParsedSong, RawSong, ScrapeFailure, ScrapeResult
from .normalizer import normalize
from .sources.base import Fetch, SourceAdapter

log = structlog.get_logger(__name__)

# on_progress(current, total, title_or_identifier)
ProgressCallback = Callable[[int, int, str], None]

PARSE_FAILED = "Failed to parse page content"


class Scraper:
    """Runs one source end to end with a fixed delay between item fetches."""

    def __init__(
        self,
        source: SourceAdapter,
        fetch: Fetch,
        delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.source = source
        self.fetch = fetch
        self.delay = source.delay if delay is None else delay
        self.sleep = sleep

    def discover(self) -> list[str]:
        """Fetch the index page and return every item identifier on it."""
        try:
            html = self.fetch(self.source.index_url)
        except FetchError as exc:
            log.error("index_fetch_failed", source=self.source.name, url=exc.url, error=str(exc))
            raise IndexFetchError(self.source.name, exc) from exc
        identifiers = self.source.parse_index(html)
        log.info("index_parsed", source=self.source.name, items=len(identifiers))
        return identifiers

    def run(self, limit: int | None = None, on_progress: ProgressCallback | None = None) -> ScrapeResult:
        identifiers = self.discover()
        if limit and limit > 0:
            identifiers = identifiers[:limit]
            log.info("index_limited", source=self.source.name, limit=limit)

        result = ScrapeResult()
        total = len(identifiers)

        for i, identifier in enumerate(identifiers):
            url = self.source.item_url(identifier)
            try:
                song = self.scrape_item(identifier, url)
            except _ItemFailed as exc:
                result.failed.append(ScrapeFailure(identifier=identifier, url=url, error=exc.reason))
                log.warning("item_failed", source=self.source.name, url=url, error=exc.reason)
                label = identifier
            else:
                result.succeeded.append(song)
                log.debug("item_scraped", source=self.source.name, url=url, title=song.title)
                label = song.title

            if on_progress is not None:
                on_progress(i + 1, total, label)

            if i < total - 1:
                self.sleep(self.delay)

        log.info(
            "scrape_finished",
            source=self.source.name,
            succeeded=len(result.succeeded),
            failed=len(result.failed),
        )
        return result

    def scrape_item(self, identifier: str, url: str) -> ParsedSong:
        """Fetch, extract, filter, enrich and normalize one item.

        Raises _ItemFailed with the reason to record.
        """
        try:
            html = self.fetch(url)
        except FetchError as exc:
            raise _ItemFailed(str(exc)) from exc

        raw = self.source.extract(html, url)
        if raw is None:
            raise _ItemFailed(PARSE_FAILED)

        reason = self.source.reject_reason(raw)
        if reason:
            raise _ItemFailed(reason)

        self.source.enrich(raw, identifier, self.fetch)
        return self.to_song(raw)

    def to_song(self, raw: RawSong) -> ParsedSong:
        lyrics = normalize(
            raw.sections,
            title=raw.title,
            source=self.source.source_id,
            source_url=raw.source_url,
            author=raw.author,
            composer=raw.composer,
            extra=raw.extra,
        )
        return ParsedSong(
            title=raw.title,
            author=raw.author,
            composer=raw.composer,
            lyrics=lyrics,
            source_url=raw.source_url,
            is_public_domain=raw.is_public_domain,
        )


class _ItemFailed(Exception):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
