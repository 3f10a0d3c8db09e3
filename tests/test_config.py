from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from hymn_ingest.config import Settings, load_settings
from hymn_ingest.exceptions import ConfigError
from hymn_ingest.fetch import DEFAULT_USER_AGENT

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def test_defaults_without_file_or_env():
    settings = load_settings(environ={})
    assert settings.store_url is None
    assert settings.service_key is None
    assert settings.user_agent == DEFAULT_USER_AGENT
    assert settings.timeout is None
    assert settings.delay is None
    assert settings.include_non_public_domain is False
    assert settings.failure_preview == 10
    assert settings.log_level == "INFO"
    assert settings.log_file is None
    assert not settings.has_store


# ---------------------------------------------------------------------------
# YAML file
# ---------------------------------------------------------------------------


def test_load_from_yaml(tmp_path):
    path = tmp_path / "hymn-ingest.yaml"
    path.write_text(
        "store_url: https://project.example.co\n"
        "service_key: secret\n"
        "delay: 0.5\n"
        "timeout: 20\n"
        "log_level: DEBUG\n",
        encoding="utf-8",
    )
    settings = load_settings(path, environ={})
    assert settings.store_url == "https://project.example.co"
    assert settings.delay == 0.5
    assert settings.timeout == 20.0
    assert settings.log_level == "DEBUG"
    assert settings.has_store


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_settings(path, environ={}) == Settings()


def test_invalid_values_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("timeout: 0\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_settings(path, environ={})


def test_negative_delay_rejected():
    with pytest.raises(ValidationError):
        Settings(delay=-1)


@pytest.mark.parametrize("text", ["- delay\n- 0\n", "just a string\n"])
def test_non_mapping_yaml_rejected(tmp_path, text):
    path = tmp_path / "list.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="expected a mapping"):
        load_settings(path, environ={})


def test_unparseable_yaml_raises(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("delay: [0\n", encoding="utf-8")
    with pytest.raises(yaml.YAMLError):
        load_settings(path, environ={})


def test_log_level_normalized():
    assert Settings(log_level="debug").log_level == "DEBUG"


def test_unknown_log_level_rejected():
    with pytest.raises(ValidationError, match="must be one of"):
        Settings(log_level="verbose")


def test_log_file_is_a_path(tmp_path):
    path = tmp_path / "hymn-ingest.yaml"
    path.write_text("log_file: logs/ingest.log\n", encoding="utf-8")
    assert load_settings(path, environ={}).log_file == Path("logs/ingest.log")


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------


def test_env_overrides_file(tmp_path):
    path = tmp_path / "hymn-ingest.yaml"
    path.write_text("store_url: https://from-file.example\n", encoding="utf-8")
    settings = load_settings(path, environ={"HYMN_INGEST_STORE_URL": "https://from-env.example"})
    assert settings.store_url == "https://from-env.example"


def test_supabase_names_accepted():
    settings = load_settings(environ={"SUPABASE_URL": "https://sb.example", "SUPABASE_SERVICE_ROLE_KEY": "k"})
    assert settings.store_url == "https://sb.example"
    assert settings.service_key == "k"
    assert settings.has_store


def test_project_name_wins_over_supabase_name():
    settings = load_settings(environ={"HYMN_INGEST_STORE_URL": "https://a", "SUPABASE_URL": "https://b"})
    assert settings.store_url == "https://a"


def test_empty_env_value_ignored():
    settings = load_settings(environ={"HYMN_INGEST_SERVICE_KEY": "", "SUPABASE_SERVICE_ROLE_KEY": "k"})
    assert settings.service_key == "k"


def test_has_store_needs_both_values():
    assert not Settings(store_url="https://a").has_store
    assert not Settings(service_key="k").has_store
