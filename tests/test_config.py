import os
import sys
from pathlib import Path

import pytest
import toml

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config_manager
from config_manager import get_config, get_engine_settings, refresh_config
from core.config import Config, FetchConfig, SyncConfig
from core.exceptions import ConfigurationError


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "test_config.toml"


# --- Test Cases for Config.load_config() ---

def test_missing_file_is_created_with_defaults(config_path):
    config = Config(config_file_path=str(config_path))

    assert config_path.exists()
    saved = toml.load(config_path)
    assert saved['sync']['debounce_ms'] == 300
    assert saved['sync']['preserve_foreign_keys'] is False
    assert saved['fetch']['max_attempts'] == 3
    assert config.sync.debounce_seconds == pytest.approx(0.3)


def test_load_config_exists_and_valid(config_path):
    custom_values = {
        'sync': {'debounce_ms': 150, 'preserve_foreign_keys': True},
        'fetch': {'max_attempts': 2, 'retry_delay_ms': 250},
        'logging': {'level': 'DEBUG', 'log_file': 'filter_sync.log'},
        'data': {'sample_days': 30},
        'ui': {'port': 9000, 'default_lookback_days': 7},
    }
    with open(config_path, 'w') as f:
        toml.dump(custom_values, f)

    config = Config(config_file_path=str(config_path))

    assert config.sync.debounce_ms == 150
    assert config.sync.preserve_foreign_keys is True
    assert config.fetch.max_attempts == 2
    assert config.fetch.retry_delay_seconds == pytest.approx(0.25)
    assert config.log.level == 'DEBUG'
    assert config.log.log_file == 'filter_sync.log'
    assert config.data.sample_days == 30
    assert config.data.events_file is None
    assert config.ui.port == 9000
    assert config.ui.default_lookback_days == 7
    # Untouched values keep their defaults
    assert config.ui.max_display_rows == 50


def test_load_config_partial_sections(config_path):
    config_path.write_text("[sync]\ndebounce_ms = 500\n")
    config = Config(config_file_path=str(config_path))
    assert config.sync.debounce_ms == 500
    assert config.fetch.max_attempts == 3


def test_load_config_malformed_toml(config_path):
    config_path.write_text("this is not = = valid toml [")
    with pytest.raises(ConfigurationError) as exc_info:
        Config(config_file_path=str(config_path))
    assert str(config_path) in str(exc_info.value)


@pytest.mark.parametrize('section,values', [
    ('fetch', {'max_attempts': 0}),
    ('fetch', {'max_attempts': 50}),
    ('sync', {'debounce_ms': -1}),
    ('logging', {'level': 'LOUD'}),
    ('ui', {'port': 70000}),
])
def test_load_config_invalid_values(config_path, section, values):
    with open(config_path, 'w') as f:
        toml.dump({section: values}, f)
    with pytest.raises(ConfigurationError):
        Config(config_file_path=str(config_path))


def test_save_and_reload_round_trip(config_path):
    config = Config(config_file_path=str(config_path))
    config.sync.preserve_foreign_keys = True
    config.data.events_file = 'events.csv'
    config.save_config()

    reloaded = Config(config_file_path=str(config_path))
    assert reloaded.sync.preserve_foreign_keys is True
    assert reloaded.data.events_file == 'events.csv'


def test_section_validation():
    assert SyncConfig().validate() == []
    assert FetchConfig(max_attempts=3).validate() == []
    assert FetchConfig(retry_delay_ms=-5).validate() == ["retry_delay_ms cannot be negative"]


# --- Test Cases for config_manager ---

def test_get_config_is_cached(isolated_config):
    assert get_config() is isolated_config
    assert get_config() is get_config()


def test_refresh_config_creates_new_instance(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_manager, '_config_instance', None)

    first = get_config()
    second = refresh_config()

    assert first is not second
    assert Path(tmp_path / "config.toml").exists()


def test_get_engine_settings_from_config(isolated_config):
    isolated_config.sync.debounce_ms = 120
    isolated_config.sync.preserve_foreign_keys = True
    isolated_config.fetch.max_attempts = 2

    settings = get_engine_settings()

    assert settings.debounce_seconds == pytest.approx(0.12)
    assert settings.preserve_foreign_keys is True
    assert settings.max_attempts == 2
