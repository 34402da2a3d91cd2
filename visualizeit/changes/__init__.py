"""Undo/redo change tracking for package entries."""

__all__ = ['ChangeManager', 'ChangeMonitor', 'ChangeRecord', 'UndoRedoStack']

from visualizeit.changes.history import ChangeRecord
from visualizeit.changes.history import UndoRedoStack
from visualizeit.changes.manager import ChangeManager
from visualizeit.changes.manager import ChangeMonitor
