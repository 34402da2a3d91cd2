"""Test environment overrides of package settings."""
import logging

from visualizeit import config
from visualizeit.changes import UndoRedoStack

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


def test_undo_limit_override(monkeypatch):
    monkeypatch.delenv('VISUALIZEIT_UNDO_LIMIT', raising=False)
    assert config._undo_limit() == 100
    monkeypatch.setenv('VISUALIZEIT_UNDO_LIMIT', '7')
    assert config._undo_limit() == 7
    monkeypatch.setenv('VISUALIZEIT_UNDO_LIMIT', 'lots')
    assert config._undo_limit() == 100
    monkeypatch.setenv('VISUALIZEIT_UNDO_LIMIT', '0')
    assert config._undo_limit() == 100


def test_default_history_limit():
    assert UndoRedoStack().limit == config.UNDO_LIMIT
