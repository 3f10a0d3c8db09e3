from abc import ABC, abstractmethod
from collections.abc import Callable

import structlog

from ..exceptions import ParseError
from ..models import RawSong

log = structlog.get_logger(__name__)

# fetch(url) -> body text; raises FetchError
Fetch = Callable[[str], str]


class SourceAdapter(ABC):
    """Abstract base class for all hymn-archive adapters.

    An adapter bundles a source's fixed URL templates, index parsing and the
    extraction half of the pipeline.  Normalization is shared and happens
    outside the adapter.
    """

    name: str  # registry / CLI key, e.g. "pateys"
    source_id: str  # written to the front-matter ``source`` field
    index_url: str
    delay: float = 0.1  # seconds between item fetches
    timeout: float = 15.0  # per-request timeout in seconds

    @abstractmethod
    def parse_index(self, html: str) -> list[str]:
        """Return the ordered, de-duplicated item identifiers on the index page."""

    @abstractmethod
    def item_url(self, identifier: str) -> str:
        """Return the page URL for an item identifier."""

    @abstractmethod
    def parse_page(self, html: str, url: str) -> RawSong:
        """Parse one item page.

        Raises ParseError if no lyric content can be found.
        """

    def extract(self, html: str, url: str) -> RawSong | None:
        """Return the extracted song, or None when the page has no usable lyrics.

        Never raises: a page that trips up the parser is one failed item,
        not a failed run.
        """
        try:
            return self.parse_page(html, url)
        except ParseError as exc:
            log.info("extract_empty", source=self.name, url=url, reason=exc.reason)
        except Exception:
            log.warning("extract_crashed", source=self.name, url=url, exc_info=True)
        return None

    def enrich(self, raw: RawSong, identifier: str, fetch: Fetch) -> None:
        """Fill in optional metadata from secondary pages. No-op by default."""

    def reject_reason(self, raw: RawSong) -> str | None:
        """Return why *raw* must not be imported, or None to accept it."""
        return None
