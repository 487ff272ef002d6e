"""Tests for Settings loading: defaults, config.yaml, environment."""

from pathlib import Path

import pytest

from liftlog.core.config import DEFAULT_API_BASE_URL, DEFAULT_DATA_DIR
from liftlog.core.config_loader import ENV_API_URL, ENV_HOME, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(ENV_HOME, raising=False)
    monkeypatch.delenv(ENV_API_URL, raising=False)


def test_defaults(tmp_path):
    settings = load_settings(tmp_path)
    assert settings.data_dir == tmp_path
    assert settings.api_base_url == DEFAULT_API_BASE_URL
    assert settings.rest_extension_seconds == 30
    assert settings.weight_unit == "lbs"
    assert settings.config_path == tmp_path / "config.yaml"
    assert settings.user_programs_dir == tmp_path / "programs"


def test_default_data_dir():
    assert load_settings().data_dir == DEFAULT_DATA_DIR


def test_env_home(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_HOME, str(tmp_path))
    assert load_settings().data_dir == tmp_path


def test_explicit_dir_beats_env(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_HOME, "/somewhere/else")
    assert load_settings(tmp_path).data_dir == tmp_path


def test_yaml_overrides(tmp_path):
    (tmp_path / "config.yaml").write_text(
        "api_base_url: http://10.0.0.5:8000/api\n"
        "api_timeout_seconds: 3\n"
        "rest_extension_seconds: 45\n"
        "weight_unit: kg\n"
        "unknown_key: ignored\n"
    )
    settings = load_settings(tmp_path)
    assert settings.api_base_url == "http://10.0.0.5:8000/api"
    assert settings.api_timeout_seconds == 3.0
    assert settings.rest_extension_seconds == 45
    assert settings.weight_unit == "kg"


def test_env_api_url_beats_yaml(monkeypatch, tmp_path):
    (tmp_path / "config.yaml").write_text("api_base_url: http://from-yaml/api\n")
    monkeypatch.setenv(ENV_API_URL, "http://from-env/api")
    assert load_settings(tmp_path).api_base_url == "http://from-env/api"


def test_invalid_value_warns(tmp_path):
    (tmp_path / "config.yaml").write_text("rest_extension_seconds: lots\n")
    with pytest.warns(UserWarning, match="rest_extension_seconds"):
        settings = load_settings(tmp_path)
    assert settings.rest_extension_seconds == 30


def test_broken_yaml_warns(tmp_path):
    (tmp_path / "config.yaml").write_text("weight_unit: [kg\n")
    with pytest.warns(UserWarning):
        settings = load_settings(Path(tmp_path))
    assert settings.weight_unit == "lbs"
