"""
Logging setup unit tests
"""
import logging
from pathlib import Path

from config.settings import settings
from odontoforense.utils.logger import setup_logging

LOGGING_CONFIG = Path(__file__).resolve().parents[2] / "config" / "logging.yaml"


def file_handlers():
    return [
        handler for handler in logging.getLogger("odontoforense").handlers
        if isinstance(handler, logging.FileHandler)
    ]


def test_file_handler_uses_configured_path(tmp_path, monkeypatch):
    """The YAML file handler writes to settings.log_file_path"""
    log_file = tmp_path / "nested" / "odontoforense.log"
    monkeypatch.setattr(settings, "log_file_path", str(log_file))

    try:
        setup_logging(str(LOGGING_CONFIG))

        assert log_file.parent.is_dir()
        assert [handler.baseFilename for handler in file_handlers()] == [str(log_file)]
    finally:
        for handler in file_handlers():
            handler.close()
        monkeypatch.undo()
        setup_logging(str(LOGGING_CONFIG))
