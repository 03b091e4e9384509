import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config_manager
from core.config import Config
from filter_sync.codecs import FieldKind
from filter_sync.registry import CodecRegistry, FieldSpec


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """
    Point the global config at a throwaway TOML file for each test so no
    config.toml is written to the working directory.
    """
    config = Config(config_file_path=str(tmp_path / "config.toml"))
    monkeypatch.setattr(config_manager, '_config_instance', config)
    yield config


@pytest.fixture
def registry():
    """Registry with one field of every kind, keyed like the stats screen."""
    return CodecRegistry([
        FieldSpec('date_from', FieldKind.DATE, wire_key='dateFrom'),
        FieldSpec('date_to', FieldKind.DATE, wire_key='dateTo'),
        FieldSpec('account_id', FieldKind.INTEGER, wire_key='accountId'),
        FieldSpec('need_to_fix', FieldKind.BOOLEAN, wire_key='needToFix'),
        FieldSpec('level', FieldKind.STRING_ARRAY, wire_key='level'),
        FieldSpec('granularity', FieldKind.ENUM, wire_key='granularity', values=('day', 'week', 'month')),
        FieldSpec('search', FieldKind.TEXT, wire_key='q'),
    ])
