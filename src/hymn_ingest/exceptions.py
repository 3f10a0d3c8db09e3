class HymnIngestError(Exception):
    """Base exception for hymn_ingest."""


class FetchError(HymnIngestError):
    """Raised when an HTTP request fails."""

    def __init__(self, url: str, status_code: int, message: str | None = None):
        self.url = url
        self.status_code = status_code
        if message is None:
            message = f"HTTP {status_code} fetching {url}" if status_code else f"Request failed for {url}"
        super().__init__(message)


class FetchTimeoutError(FetchError):
    """Raised when an HTTP request does not complete within its timeout."""

    def __init__(self, url: str, timeout: float):
        self.timeout = timeout
        super().__init__(url, 0, f"Timed out after {timeout:g}s fetching {url}")


class IndexFetchError(HymnIngestError):
    """Raised when a source's index page cannot be fetched. Fatal for a run."""

    def __init__(self, source: str, cause: FetchError):
        self.source = source
        self.cause = cause
        super().__init__(f"Could not fetch {source} index: {cause}")


class ParseError(HymnIngestError):
    """Raised when expected content cannot be extracted from a page."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Parse error for {url}: {reason}")


class MissingTitleError(HymnIngestError):
    """Raised when canonical markdown has no ``title`` in its front-matter."""

    def __init__(self):
        super().__init__("Song must have a title in front-matter")


class StoreError(HymnIngestError):
    """Raised when the content store rejects a lookup or insert."""


class UnsupportedSourceError(HymnIngestError):
    """Raised when no adapter is registered under the given name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No source adapter named: {name}")


class InvalidRequestError(HymnIngestError):
    """Raised when an import request body is malformed."""


class UnauthorizedError(HymnIngestError):
    """Raised when an import is requested without any caller identity."""


class ForbiddenError(HymnIngestError):
    """Raised when the caller is identified but not allowed to import."""


class ConfigError(HymnIngestError):
    """Raised when a settings file cannot be used."""
