"""Bounded undo/redo history of one trackable entry."""
from __future__ import annotations

__all__ = ['ChangeRecord', 'UndoRedoStack']

import typing
from dataclasses import dataclass

from visualizeit import config

ChangeFn = typing.Callable[[bool], typing.Any]
"""Apply (or revert) a change and return the mutated entity.

The argument is True when the function is replayed as a redo.
"""


@dataclass(frozen=True)
class ChangeRecord:
    undo_fn: ChangeFn
    redo_fn: ChangeFn


class UndoRedoStack:
    """Ordered change records with a cursor at the most recent applied change.

    The cursor is -1 when there is nothing to undo. Registering a new change
    discards every record after the cursor. When the history exceeds *limit*,
    the oldest record is dropped.
    """
    def __init__(self, limit: int = None):
        if limit is None:
            limit = config.UNDO_LIMIT
        if limit < 1:
            raise ValueError('Undo history limit must be positive, not {}'.format(limit))
        self.limit = limit
        self._records: typing.List[ChangeRecord] = []
        self._cursor = -1

    def __len__(self):
        return len(self._records)

    @property
    def cursor(self) -> int:
        return self._cursor

    def register_op(self, undo_fn: ChangeFn, redo_fn: ChangeFn):
        del self._records[self._cursor + 1:]
        self._records.append(ChangeRecord(undo_fn, redo_fn))
        if len(self._records) > self.limit:
            del self._records[0]
        self._cursor = len(self._records) - 1

    def is_undo_available(self) -> bool:
        return self._cursor >= 0

    def is_redo_available(self) -> bool:
        return self._cursor < len(self._records) - 1

    def peek_undo(self) -> ChangeRecord:
        assert self.is_undo_available()
        return self._records[self._cursor]

    def peek_redo(self) -> ChangeRecord:
        assert self.is_redo_available()
        return self._records[self._cursor + 1]

    def step_back(self):
        assert self.is_undo_available()
        self._cursor -= 1

    def step_forward(self):
        assert self.is_redo_available()
        self._cursor += 1
