import time

import httpx
import structlog

from .exceptions import FetchError, FetchTimeoutError

log = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 15.0

DEFAULT_USER_AGENT = "hymn-ingest public domain hymn importer (+https://github.com/burggraf/mobileworship)"


class FetchClient:
    """Blocking HTTP GET over one pooled :class:`httpx.Client`.

    Each call is bounded by its timeout as a total deadline: httpx enforces it
    per connect/read, and the body is streamed so a server trickling bytes is
    cut off once the deadline passes.  Either way the in-flight response is
    closed and :class:`~hymn_ingest.exceptions.FetchTimeoutError` is raised,
    so nothing is left running between items.  Close the client (or use it
    as a context manager) when the run is over.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ):
        self.timeout = timeout
        self._client = httpx.Client(
            headers={"User-Agent": user_agent},
            follow_redirects=True,
            timeout=timeout,
            transport=transport,
        )

    def fetch(self, url: str, timeout: float | None = None) -> str:
        """Return the body of *url* as text.

        Raises FetchTimeoutError after *timeout* seconds and FetchError on a
        non-2xx status, a malformed URL or any other transport failure.
        """
        timeout = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout
        try:
            with self._client.stream("GET", url, timeout=timeout) as resp:
                if not resp.is_success:
                    raise FetchError(url, resp.status_code)
                chunks = []
                for chunk in resp.iter_bytes():
                    if time.monotonic() > deadline:
                        raise FetchTimeoutError(url, timeout)
                    chunks.append(chunk)
                body = b"".join(chunks)
                encoding = resp.encoding or "utf-8"
        except httpx.TimeoutException as exc:
            raise FetchTimeoutError(url, timeout) from exc
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise FetchError(url, 0, f"Request failed for {url}: {exc}") from exc

        log.debug("fetched", url=url, status=resp.status_code, size=len(body))
        return body.decode(encoding, errors="replace")

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "FetchClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
