import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog


def _processors(json: bool) -> list:
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(colors=False)
    return [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


LOG_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _level(level: int | str) -> int:
    if not isinstance(level, str):
        return level
    try:
        return LOG_LEVELS[level.upper()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level}") from None


def setup_logging(level: int | str = logging.INFO, json: bool = True) -> None:
    """Configure structlog on top of stdlib logging. Safe to call more than once.

    JSON lines by default; ``json=False`` gives a plain console renderer for
    interactive runs.  Call :func:`add_file_logging` to also write to a file.
    """
    level = _level(level)
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=_processors(json),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def add_file_logging(path: str | Path, level: int | str = logging.INFO) -> Path:
    """Also write log lines to *path*, rotating at 5 MB with three backups.

    Calling it again for a file that already has a handler is a no-op.
    """
    log_file = Path(path).expanduser().resolve()
    root = logging.getLogger()
    if any(getattr(h, "baseFilename", None) == str(log_file) for h in root.handlers):
        return log_file

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
    handler.setLevel(_level(level))
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    return log_file
