"""Import entry point: authorize, validate the request, scrape, import, report.

:func:`handle_request` is the callable surface for a privileged HTTP
endpoint or job runner.  Partial failure is still a success (200); only a
rejected caller, a malformed body or a failed index fetch is an error.
"""

import json
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import (
    ForbiddenError,
    HymnIngestError,
    IndexFetchError,
    InvalidRequestError,
    UnauthorizedError,
)
from .importer import SongImporter
from .models import ImportResult, RunReport, ScrapeResult
from .scraper import ProgressCallback, Scraper
from .sources.base import Fetch, SourceAdapter
from .store import SongStore

log = structlog.get_logger(__name__)

ADMIN_ROLE = "admin"
FAILURE_PREVIEW = 10


class ImportRequest(BaseModel):
    """Body of an import call: ``{"limit": 5, "dryRun": true}``."""

    model_config = ConfigDict(populate_by_name=True)

    limit: int | None = Field(default=None, ge=0)  # 0 or missing: no limit
    dry_run: bool = Field(default=False, alias="dryRun")

    @classmethod
    def from_body(cls, body: str | bytes | dict | None) -> "ImportRequest":
        """Parse a JSON body; an empty body is a default request.

        Raises InvalidRequestError for malformed JSON or invalid fields.
        """
        if body is None or (isinstance(body, (str, bytes)) and not body.strip()):
            return cls()
        try:
            data = json.loads(body) if isinstance(body, (str, bytes)) else body
            return cls.model_validate(data)
        except (ValueError, ValidationError) as exc:
            raise InvalidRequestError(f"Malformed import request: {exc}") from exc


@dataclass(frozen=True)
class Caller:
    """Identity resolved by the auth layer before the pipeline is called."""

    user_id: str | None = None
    role: str | None = None
    service: bool = False  # privileged service credential


def authorize(caller: Caller) -> None:
    """Allow service credentials and admin users.

    Raises UnauthorizedError when there is no identity and ForbiddenError
    for any other user.
    """
    if caller.service:
        return
    if caller.user_id is None:
        raise UnauthorizedError("Unauthorized")
    if caller.role != ADMIN_ROLE:
        raise ForbiddenError("Admin access required")


def scrape_and_import(
    request: ImportRequest,
    *,
    source: SourceAdapter,
    store: SongStore,
    fetch: Fetch,
    delay: float | None = None,
    on_progress: ProgressCallback | None = None,
) -> tuple[ScrapeResult, ImportResult]:
    """Scrape *source* and import the results into *store*.

    Raises IndexFetchError if the source's index cannot be fetched and
    StoreError if the existing keys cannot be loaded.
    """
    log.info("import_started", source=source.name, limit=request.limit, dry_run=request.dry_run)
    scraped = Scraper(source, fetch, delay=delay).run(limit=request.limit, on_progress=on_progress)
    imported = SongImporter(store).import_songs(scraped.succeeded, dry_run=request.dry_run)
    return scraped, imported


def build_report(scraped: ScrapeResult, imported: ImportResult, failure_preview: int = FAILURE_PREVIEW) -> RunReport:
    """Summarize a run; scrape failures are listed before import failures."""
    failures = [{"url": f.url, "error": f.error} for f in scraped.failed]
    failures += [{"url": e.source_url, "error": str(e)} for e in imported.errors]
    return RunReport(
        scraped=len(scraped.succeeded),
        inserted=imported.inserted,
        skipped=imported.skipped,
        failed=len(failures),
        failures=failures[:failure_preview],
    )


def run_import(
    request: ImportRequest,
    caller: Caller,
    *,
    source: SourceAdapter,
    store: SongStore,
    fetch: Fetch,
    delay: float | None = None,
    failure_preview: int = FAILURE_PREVIEW,
    on_progress: ProgressCallback | None = None,
) -> RunReport:
    """Authorize *caller*, then scrape and import.

    Raises UnauthorizedError/ForbiddenError before any request is made.
    """
    authorize(caller)
    scraped, imported = scrape_and_import(
        request, source=source, store=store, fetch=fetch, delay=delay, on_progress=on_progress
    )
    return build_report(scraped, imported, failure_preview)


def handle_request(
    body: str | bytes | dict | None,
    caller: Caller,
    *,
    source: SourceAdapter,
    store: SongStore,
    fetch: Fetch,
    delay: float | None = None,
) -> tuple[int, dict[str, Any]]:
    """Run an import call and return ``(status, payload)``."""
    try:
        authorize(caller)
        request = ImportRequest.from_body(body)
        report = run_import(request, caller, source=source, store=store, fetch=fetch, delay=delay)
    except UnauthorizedError as exc:
        return 401, {"error": str(exc)}
    except ForbiddenError as exc:
        return 403, {"error": str(exc)}
    except InvalidRequestError as exc:
        return 400, {"error": str(exc)}
    except IndexFetchError as exc:
        log.error("import_aborted", source=source.name, error=str(exc))
        return 502, {"error": str(exc)}
    except HymnIngestError as exc:
        log.error("import_failed", source=source.name, error=str(exc))
        return 500, {"error": "Import failed"}
    return 200, report.to_dict()
