import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from .exceptions import ConfigError
from .fetch import DEFAULT_USER_AGENT
from .logging import LOG_LEVELS

# Settings field -> environment variables, first set one wins.
ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "store_url": ("HYMN_INGEST_STORE_URL", "SUPABASE_URL"),
    "service_key": ("HYMN_INGEST_SERVICE_KEY", "SUPABASE_SERVICE_ROLE_KEY"),
}


class Settings(BaseModel):
    store_url: str | None = None
    service_key: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float | None = Field(default=None, gt=0)  # overrides the source's own timeout
    delay: float | None = Field(default=None, ge=0)  # overrides the source's own delay
    include_non_public_domain: bool = False
    failure_preview: int = Field(default=10, ge=0)
    log_level: str = "INFO"
    log_file: Path | None = None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
        return value

    @property
    def has_store(self) -> bool:
        return bool(self.store_url and self.service_key)


def load_settings(path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from an optional YAML file, then apply environment overrides.

    Raises ConfigError if the file is not a YAML mapping, yaml.YAMLError if it
    does not parse and pydantic's ValidationError for invalid values.
    """
    data: dict = {}
    if path is not None:
        loaded = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(f"{path}: expected a mapping of settings, got {type(loaded).__name__}")
        data = loaded or {}

    environ = os.environ if environ is None else environ
    for field, names in ENV_OVERRIDES.items():
        for name in names:
            if environ.get(name):
                data[field] = environ[name]
                break

    return Settings.model_validate(data)
