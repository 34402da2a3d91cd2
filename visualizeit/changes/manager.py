"""Apply, undo and redo changes to the entries of loaded packages.

All edits go through :py:meth:`ChangeManager.apply_change`, which pairs the
change with the function that reverts it. Change and undo functions mutate
the tree and return the entity they mutated; the manager then propagates the
change up the tree (updating the CRCs) and files the pair under the nearest
trackable entry, i.e. the top-level package entry or the package itself.

Change functions run again on redo, and undo functions may run long after
registration, possibly after the tree has been reloaded. They should
therefore look objects up by id when they run rather than capture entity
references::

    def move(is_redo):
        valve = registry.get_entry('pkgA', 'scene1').get_comp('v1')
        valve.x = 10
        return valve

For each trackable entry, the manager publishes a :py:class:`ChangeMonitor`
snapshot (display mode, in-sync with the last save, undo and redo
availability) to subscribers whenever the snapshot changes.
"""
from __future__ import annotations

__all__ = ['ChangeManager', 'ChangeMonitor']

import contextlib
import logging
import typing
from dataclasses import dataclass

from visualizeit.changes.history import ChangeFn
from visualizeit.changes.history import UndoRedoStack
from visualizeit.core.dispmode import DispMode
from visualizeit.core.entity import Entity
from visualizeit.exceptions import HistoryMisuse
from visualizeit.exceptions import ProtocolError

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


@dataclass(frozen=True)
class ChangeMonitor:
    disp_mode: DispMode
    in_sync: bool
    undo_available: bool
    redo_available: bool


Listener = typing.Callable[[ChangeMonitor], None]


class ChangeManager:
    """Keep the undo/redo histories of trackable entries.

    Histories are bounded by *limit* records (default: ``config.UNDO_LIMIT``).
    """
    def __init__(self, *, limit: int = None):
        self.limit = limit
        self._histories: typing.Dict[str, UndoRedoStack] = {}
        self._entries: typing.Dict[str, Entity] = {}
        self._monitors: typing.Dict[str, ChangeMonitor] = {}
        self._listeners: typing.Dict[str, typing.List[Listener]] = {}
        self._pending: typing.Optional[typing.Set[str]] = None

    def track(self, entry: Entity):
        """Start publishing the state of a trackable entry."""
        self.entry_changed(entry)

    def forget(self, entry_id: str):
        """Drop the history and published state of *entry_id*."""
        self._histories.pop(entry_id, None)
        self._entries.pop(entry_id, None)
        self._monitors.pop(entry_id, None)

    def entry_changed(self, entry: Entity):
        """Notification that a trackable entry changed its CRC, baseline or display mode."""
        entry_id = entry.trackable_id()
        self._entries[entry_id] = entry
        if self._pending is not None:
            self._pending.add(entry_id)
        else:
            self._publish(entry_id)

    def subscribe(self, entry_id: str, listener: Listener) -> typing.Callable[[], None]:
        """Call *listener* with each new ChangeMonitor of *entry_id*.

        Returns a function that cancels the subscription.
        """
        listeners = self._listeners.setdefault(entry_id, [])
        listeners.append(listener)

        def unsubscribe():
            if listener in listeners:
                listeners.remove(listener)
        return unsubscribe

    def get_monitor(self, entry_id: str) -> typing.Optional[ChangeMonitor]:
        return self._monitors.get(entry_id)

    def get_history(self, entry_id: str) -> typing.Optional[UndoRedoStack]:
        return self._histories.get(entry_id)

    def is_undo_available(self, entry_id: str) -> bool:
        history = self._histories.get(entry_id)
        return history is not None and history.is_undo_available()

    def is_redo_available(self, entry_id: str) -> bool:
        history = self._histories.get(entry_id)
        return history is not None and history.is_redo_available()

    def apply_change(self, change_fn: ChangeFn, undo_fn: ChangeFn) -> Entity:
        """Apply *change_fn* and record it, with *undo_fn*, for undo.

        Returns the entity that *change_fn* mutated.
        """
        with self._batch():
            target = change_fn(False)
            try:
                entry = self._trackable_entry(target)
            except ProtocolError:
                self._recover(target)
                raise
            target.trickle_up_change()
            entry_id = entry.trackable_id()
            history = self._histories.get(entry_id)
            if history is None:
                history = UndoRedoStack(self.limit)
                self._histories[entry_id] = history
            history.register_op(undo_fn, change_fn)
            self._entries[entry_id] = entry
            self._pending.add(entry_id)
        logger.debug('Applied change to {!r} in {}.'.format(target, entry_id))
        return target

    def apply_undo(self, entry_id: str) -> Entity:
        history = self._require_history(entry_id, 'undo')
        if not history.is_undo_available():
            raise HistoryMisuse('Nothing to undo for {!r}.'.format(entry_id), entry_id=entry_id, operation='undo')
        with self._batch():
            target = history.peek_undo().undo_fn(False)
            self._check_result(target, entry_id)
            target.trickle_up_change()
            history.step_back()
            self._pending.add(entry_id)
        logger.debug('Undid change to {!r} in {}.'.format(target, entry_id))
        return target

    def apply_redo(self, entry_id: str) -> Entity:
        history = self._require_history(entry_id, 'redo')
        if not history.is_redo_available():
            raise HistoryMisuse('Nothing to redo for {!r}.'.format(entry_id), entry_id=entry_id, operation='redo')
        with self._batch():
            target = history.peek_redo().redo_fn(True)
            self._check_result(target, entry_id)
            target.trickle_up_change()
            history.step_forward()
            self._pending.add(entry_id)
        logger.debug('Redid change to {!r} in {}.'.format(target, entry_id))
        return target

    def change_disp_mode(self, entry: Entity, disp_mode: DispMode) -> bool:
        """Switch the display mode of a trackable entry and publish it."""
        changed = entry.set_disp_mode(disp_mode)
        if changed:
            self.entry_changed(entry)
        return changed

    def _require_history(self, entry_id: str, operation: str) -> UndoRedoStack:
        history = self._histories.get(entry_id)
        if history is None:
            raise HistoryMisuse('No change history for {!r}.'.format(entry_id), entry_id=entry_id, operation=operation)
        return history

    @staticmethod
    def _trackable_entry(target) -> Entity:
        if not isinstance(target, Entity):
            raise ProtocolError('Change functions must return the mutated entity, not {!r}.'.format(target))
        entry = target.get_trackable_entry()
        if entry is None:
            raise ProtocolError('{!r} does not belong to a package entry; its changes cannot be tracked.'.format(target))
        return entry

    def _check_lineage(self, target, entry_id: str):
        entry = self._trackable_entry(target)
        if entry.trackable_id() != entry_id:
            raise ProtocolError('{!r} belongs to {!r}, not to {!r}.'.format(target, entry.trackable_id(), entry_id))

    def _check_result(self, target, entry_id: str):
        """Check the result of an undo or redo function against the history it was filed in.

        A rejected function has already mutated the tree, so the history of
        *entry_id* no longer describes it and is dropped.
        """
        try:
            self._check_lineage(target, entry_id)
        except ProtocolError:
            logger.warning('Dropping the change history of {!r} after a rejected undo/redo.'.format(entry_id))
            self._histories.pop(entry_id, None)
            self._recover(target, self._entries.get(entry_id))
            self._pending.add(entry_id)
            raise

    def _recover(self, target, entry: Entity = None):
        # Cached CRCs may be stale anywhere the rejected function could have reached.
        touched = [entry] if entry is not None else list(self._entries.values())
        if isinstance(target, Entity):
            touched.append(target.get_trackable_entry() or target)
        for entity in touched:
            entity.invalidate_crc()
            entity.trickle_up_change()

    @contextlib.contextmanager
    def _batch(self):
        # Collect notifications so that each entry publishes at most once per operation.
        if self._pending is not None:
            yield
            return
        self._pending = set()
        try:
            yield
        finally:
            pending, self._pending = self._pending, None
            for entry_id in sorted(pending):
                self._publish(entry_id)

    def _publish(self, entry_id: str):
        entry = self._entries.get(entry_id)
        if entry is None:
            return
        monitor = ChangeMonitor(disp_mode=entry.disp_mode,
                                in_sync=entry.is_in_sync(),
                                undo_available=self.is_undo_available(entry_id),
                                redo_available=self.is_redo_available(entry_id))
        if self._monitors.get(entry_id) == monitor:
            return
        self._monitors[entry_id] = monitor
        for listener in list(self._listeners.get(entry_id, ())):
            listener(monitor)
