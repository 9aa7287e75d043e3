# tests/test_config.py
import logging
import os
from pathlib import Path

import pytest

from vocab_srs.config import Settings, load_settings, read_config_file
from vocab_srs.errors import ConfigError
from vocab_srs.storage import DEFAULT_DATA_DIR

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.upper().startswith("VOCAB_SRS_"):
            monkeypatch.delenv(key)

def test_defaults(tmp_path):
    settings = load_settings(config_path=str(tmp_path / "missing.yaml"))
    assert settings == Settings()
    assert settings.data_dir == DEFAULT_DATA_DIR
    assert settings.new_cards_per_day == 20
    assert settings.log_level == "WARNING"

def test_config_file_in_data_dir(tmp_path, monkeypatch):
    (tmp_path / "config.yaml").write_text("new_cards_per_day: 5\nloop_mode: true\n", encoding="utf-8")
    monkeypatch.setenv("VOCAB_SRS_HOME", str(tmp_path))
    settings = load_settings()
    assert settings.data_dir == str(tmp_path)
    assert settings.new_cards_per_day == 5
    assert settings.loop_mode is True

def test_environment_overrides_file(tmp_path, monkeypatch):
    config = tmp_path / "custom.yaml"
    config.write_text("new_cards_per_day: 5\nlog_level: info\n", encoding="utf-8")
    monkeypatch.setenv("VOCAB_SRS_NEW_CARDS_PER_DAY", "12")
    monkeypatch.setenv("VOCAB_SRS_LOOP_MODE", "yes")
    settings = load_settings(config_path=str(config))
    assert settings.new_cards_per_day == 12
    assert settings.loop_mode is True
    assert settings.log_level == "INFO"

def test_data_dir_expands_user(tmp_path, monkeypatch):
    monkeypatch.setenv("VOCAB_SRS_DATA_DIR", "~/words")
    settings = load_settings(config_path=str(tmp_path / "none.yaml"))
    assert settings.data_dir == str(Path("~/words").expanduser())

def test_data_dir_from_file(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text(f"data_dir: {tmp_path / 'deck'}\n", encoding="utf-8")
    settings = load_settings(config_path=str(config))
    assert settings.data_dir == str(tmp_path / "deck")

def test_explicit_values():
    settings = Settings(data_dir="/tmp/vocab", new_cards_per_day=3)
    assert settings.data_dir == "/tmp/vocab"
    assert settings.new_cards_per_day == 3

@pytest.mark.parametrize("name, value", [
    ("VOCAB_SRS_NEW_CARDS_PER_DAY", "lots"),
    ("VOCAB_SRS_NEW_CARDS_PER_DAY", "-1"),
    ("VOCAB_SRS_LOOP_MODE", "maybe"),
    ("VOCAB_SRS_LOG_LEVEL", "LOUD"),
])
def test_invalid_values_raise(tmp_path, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        load_settings(config_path=str(tmp_path / "none.yaml"))

def test_boolean_is_not_an_integer(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("new_cards_per_day: true\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(config_path=str(config))

def test_read_config_file(tmp_path, caplog):
    config = tmp_path / "config.yaml"
    config.write_text("loop_mode: false\ntheme: dark\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="vocab_srs.config"):
        data = read_config_file(config)
    assert data == {"loop_mode": False}
    assert "theme" in caplog.text

def test_unknown_file_keys_do_not_fail(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("theme: dark\nnew_cards_per_day: 7\n", encoding="utf-8")
    assert load_settings(config_path=str(config)).new_cards_per_day == 7

def test_read_config_file_empty_and_missing(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("", encoding="utf-8")
    assert read_config_file(config) == {}
    assert read_config_file(tmp_path / "nope.yaml") == {}

def test_read_config_file_rejects_non_mapping(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        read_config_file(config)

def test_read_config_file_invalid_yaml(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("loop_mode: [", encoding="utf-8")
    with pytest.raises(ConfigError):
        read_config_file(config)
