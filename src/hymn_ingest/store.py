"""Content store adapters used by the import sink.

The pipeline only needs two operations from the store: the set of natural
keys (``source_url``) already present in the global library partition, and a
single-record insert.

Persisted record fields::

    church_id         None for the global (shared) library
    title, author, composer
    lyrics            canonical markdown
    source_url        natural / dedup key
    is_public_domain
    tags
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from .exceptions import StoreError

log = structlog.get_logger(__name__)

SONGS_TABLE = "songs"


class SongStore(ABC):
    """Abstract key-addressable song store."""

    @abstractmethod
    def existing_source_urls(self) -> set[str]:
        """Return every ``source_url`` already stored in the global partition.

        Raises StoreError if the lookup fails.
        """

    @abstractmethod
    def insert(self, record: dict[str, Any]) -> None:
        """Insert one song record.

        Raises StoreError if the store rejects it.
        """

    def close(self) -> None:
        """Release any connection held by the store."""

    def __enter__(self) -> "SongStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class InMemorySongStore(SongStore):
    """Dict-backed store with a unique ``source_url`` constraint."""

    def __init__(self, records: list[dict[str, Any]] | None = None):
        self.records: list[dict[str, Any]] = list(records or [])

    def existing_source_urls(self) -> set[str]:
        return {
            r["source_url"]
            for r in self.records
            if r.get("church_id") is None and r.get("source_url")
        }

    def insert(self, record: dict[str, Any]) -> None:
        url = record.get("source_url")
        if url and any(r.get("source_url") == url for r in self.records):
            raise StoreError(f"duplicate key value violates unique constraint on source_url: {url}")
        self.records.append(dict(record))


class RestSongStore(SongStore):
    """PostgREST ``songs`` table (e.g. Supabase) over httpx.

    Authenticates with a service key, which bypasses row-level security, so
    only privileged callers should be handed one of these.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def existing_source_urls(self) -> set[str]:
        params = {
            "select": "source_url",
            "church_id": "is.null",
            "source_url": "not.is.null",
        }
        rows = self._request("GET", f"/{SONGS_TABLE}", params=params).json()
        urls = {row["source_url"] for row in rows if row.get("source_url")}
        log.info("existing_keys_loaded", count=len(urls))
        return urls

    def insert(self, record: dict[str, Any]) -> None:
        self._request(
            "POST",
            f"/{SONGS_TABLE}",
            json=record,
            headers={"Prefer": "return=minimal"},
        )

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise StoreError(f"{method} {path} failed: {exc}") from exc
        if not resp.is_success:
            raise StoreError(_error_message(resp))
        return resp

    def close(self) -> None:
        self._client.close()


def _error_message(resp: httpx.Response) -> str:
    """Prefer PostgREST's JSON ``message`` over the raw body."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {resp.status_code}: {resp.text[:200]}"
