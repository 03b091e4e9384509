import logging

import pytest

from core.config import LoggingConfig
from core.logging_config import add_file_handler, set_log_level, setup_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    werkzeug_level = logging.getLogger('werkzeug').level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger('werkzeug').setLevel(werkzeug_level)


def test_setup_logging_console_only():
    setup_logging(level='DEBUG')
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert logging.getLogger('werkzeug').level == logging.WARNING


def test_setup_logging_with_file(tmp_path):
    log_dir = tmp_path / "logs"
    setup_logging(level='INFO', log_file='app.log', log_dir=str(log_dir))
    logging.getLogger('filter_sync.test').info("hello")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello" in (log_dir / "app.log").read_text()


def test_setup_logging_from_config(tmp_path):
    setup_logging_from_config(LoggingConfig(level='WARNING', log_file='sync.log', log_dir=str(tmp_path)))
    assert logging.getLogger().level == logging.WARNING
    assert (tmp_path / "sync.log").exists()


def test_set_log_level_updates_handlers():
    setup_logging(level='INFO')
    set_log_level('ERROR')
    root = logging.getLogger()
    assert root.level == logging.ERROR
    assert all(handler.level == logging.ERROR for handler in root.handlers)


def test_add_file_handler(tmp_path):
    setup_logging(level='INFO')
    add_file_handler('extra.log', log_dir=str(tmp_path), level='DEBUG')
    assert len(logging.getLogger().handlers) == 2
    assert (tmp_path / "extra.log").exists()
