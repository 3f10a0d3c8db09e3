import json
import sys
from dataclasses import asdict
from functools import partial
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from .config import load_settings
from .exceptions import (
    ConfigError,
    IndexFetchError,
    MissingTitleError,
    StoreError,
    UnsupportedSourceError,
)
from .fetch import FetchClient
from .logging import add_file_logging, setup_logging
from .markdown import parse_song
from .pipeline import ImportRequest, build_report, scrape_and_import
from .registry import get_source, source_names
from .store import InMemorySongStore, RestSongStore


@click.group()
def main() -> None:
    """Scrape public domain hymn archives into canonical markdown songs."""


@main.command("sources")
def list_sources() -> None:
    """List the hymn archives that can be imported."""
    for name in source_names():
        source = get_source(name)
        click.echo(f"{name:<16} {source.index_url}")


@main.command("import")
@click.argument("source_name", metavar="SOURCE")
@click.option("--limit", type=click.IntRange(min=1), default=None,
              help="Only scrape the first N hymns on the index.")
@click.option("--dry-run", is_flag=True, default=False,
              help="Scrape and classify duplicates but do not insert.")
@click.option("-o", "--output", "output_path", default=None, metavar="PATH",
              help="Also write the scraped songs and failures to a JSON file.")
@click.option("-c", "--config", "config_path", default=None, metavar="PATH",
              type=click.Path(exists=True, dir_okay=False),
              help="YAML settings file.")
@click.option("--log-file", default=None, metavar="PATH",
              help="Also write log lines to a rotating file.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging.")
def import_command(
    source_name: str,
    limit: int | None,
    dry_run: bool,
    output_path: str | None,
    config_path: str | None,
    log_file: str | None,
    verbose: bool,
) -> None:
    """Scrape SOURCE and import new hymns into the song store.

    \b
    Sources:
      - hymnstogod      hymnstogod.org
      - pateys          pateys.nf.ca
      - timelesstruths  library.timelesstruths.org
    """
    try:
        settings = load_settings(config_path)
    except (ConfigError, ValidationError, yaml.YAMLError) as exc:
        click.echo(f"Error: invalid settings: {exc}", err=True)
        sys.exit(1)

    level = "DEBUG" if verbose else settings.log_level
    setup_logging(level, json=False)
    log_file = log_file or settings.log_file
    if log_file:
        add_file_logging(log_file, level)

    # --- Resolve source ---
    try:
        source = get_source(source_name, public_domain_only=not settings.include_non_public_domain)
    except UnsupportedSourceError as exc:
        click.echo(f"Error: {exc}", err=True)
        click.echo(f"Available sources: {', '.join(source_names())}", err=True)
        sys.exit(1)

    # --- Resolve store ---
    if settings.has_store:
        store = RestSongStore(settings.store_url, settings.service_key)
    elif dry_run:
        store = InMemorySongStore()
    else:
        click.echo(
            "Error: no song store configured (set HYMN_INGEST_STORE_URL and "
            "HYMN_INGEST_SERVICE_KEY, or use --dry-run)",
            err=True,
        )
        sys.exit(1)

    click.echo(f"Mode: {'DRY RUN' if dry_run else 'LIVE'}")
    request = ImportRequest(limit=limit, dry_run=dry_run)

    # --- Scrape + import ---
    with store, FetchClient(user_agent=settings.user_agent) as client:
        fetch = partial(client.fetch, timeout=settings.timeout or source.timeout)
        try:
            scraped, imported = scrape_and_import(
                request,
                source=source,
                store=store,
                fetch=fetch,
                delay=settings.delay,
                on_progress=_print_progress,
            )
        except IndexFetchError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)
        except StoreError as exc:
            click.echo(f"Error: song store unavailable: {exc}", err=True)
            sys.exit(1)

    report = build_report(scraped, imported, settings.failure_preview)

    # --- Report ---
    click.echo("")
    click.echo(f"Scraped:  {report.scraped}")
    click.echo(f"Inserted: {report.inserted}")
    click.echo(f"Skipped (duplicates): {report.skipped}")
    click.echo(f"Failed:   {report.failed}")
    for failure in report.failures:
        click.echo(f"  - {failure['url']}: {failure['error']}")
    if report.failed > len(report.failures):
        click.echo(f"  ... and {report.failed - len(report.failures)} more")

    if output_path:
        payload = {
            "succeeded": [asdict(song) for song in scraped.succeeded],
            "failed": [asdict(failure) for failure in scraped.failed],
        }
        Path(output_path).write_text(json.dumps(payload, indent=2), encoding="utf-8")
        click.echo(f"Written to {output_path}")


@main.command("check")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def check_command(path: str) -> None:
    """Validate a canonical markdown song file and list its sections."""
    try:
        content = parse_song(Path(path).read_text(encoding="utf-8"))
    except MissingTitleError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(content.metadata.title)
    for section in content.sections:
        click.echo(f"  {section.label} ({len(section.lines)} lines)")


def _print_progress(current: int, total: int, title: str) -> None:
    pct = round(current / total * 100) if total else 100
    click.echo(f"[{pct}%] {current}/{total}: {title}")
