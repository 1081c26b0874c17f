"""Tests for logging setup."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import json
import logging

import pytest

from logging_config import LOG_FILE_NAME, configure_logging


def _own_handlers():
    return [h for h in logging.getLogger().handlers if getattr(h, '_sku_matcher_handler', False)]


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in _own_handlers():
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)


class TestConfigureLogging:
    def test_console_only_by_default(self, monkeypatch):
        monkeypatch.delenv('LOG_LEVEL', raising=False)
        assert configure_logging() == logging.INFO
        assert len(_own_handlers()) == 1

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'debug')
        assert configure_logging() == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'chatty')
        assert configure_logging() == logging.INFO

    def test_repeat_call_does_not_stack_handlers(self, tmp_path):
        configure_logging(tmp_path)
        configure_logging(tmp_path)
        assert len(_own_handlers()) == 2

    def test_file_handler_writes_json(self, tmp_path, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'INFO')
        configure_logging(tmp_path)
        logging.getLogger('matcher').info("Matched %d rows", 3)
        for handler in _own_handlers():
            handler.flush()
        line = (tmp_path / LOG_FILE_NAME).read_text(encoding='utf-8').strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry['level'] == 'INFO'
        assert entry['logger'] == 'matcher'
        assert entry['message'] == 'Matched 3 rows'
