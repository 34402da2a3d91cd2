"""Manage the visualize-it Session.

A Session is the composition root of the kernel: it owns the ClassRegistry
of loaded packages and the ChangeManager that keeps their undo histories.
Nothing in the kernel keeps these services in module globals; code that needs
them takes them as arguments or asks for the current Session.

This module allows the Python interpreter to track a stack of Sessions, so
that a Session can be activated for a block of code::

    with Session() as session:
        package = session.open_package(document)
        ...

:py:func:`get_context` returns the innermost active Session, creating a
default Session on first use.
"""
from __future__ import annotations

__all__ = ['get_context', 'Session']

import logging
import typing
import warnings

from visualizeit.changes import ChangeManager
from visualizeit.core.builtin import create_core_package
from visualizeit.core.package import PackageContainer
from visualizeit.core.registry import ClassRegistry
from visualizeit.exceptions import NonPersistablePackage

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


class Session:
    """Own the services for one editing session.

    The built-in ``core`` package is registered unless *core* is False.
    """
    def __init__(self, *, registry: ClassRegistry = None, change_manager: ChangeManager = None, core: bool = True):
        self.registry = ClassRegistry() if registry is None else registry
        self.change_manager = ChangeManager() if change_manager is None else change_manager
        self.__active = False
        if core:
            self.register_package(create_core_package())
        logger.info('Opened session with {} package(s).'.format(len(self.registry)))

    def register_package(self, package: PackageContainer) -> PackageContainer:
        """Make the types of *package* resolvable and track changes to its entries."""
        self.registry.register(package)
        package.change_manager = self.change_manager
        self.change_manager.track(package)
        for entry in package.iter_entries():
            self.change_manager.track(entry)
        return package

    def unregister_package(self, package_id: str) -> PackageContainer:
        package = self.registry.unregister(package_id)
        for entry in package.iter_entries():
            self.change_manager.forget(entry.trackable_id())
        self.change_manager.forget(package.trackable_id())
        package.change_manager = None
        return package

    def open_package(self, doc: dict) -> PackageContainer:
        """Hydrate a package document and register the package."""
        package = PackageContainer.from_portable(doc, registry=self.registry)
        return self.register_package(package)

    def save_package(self, package: PackageContainer) -> dict:
        """Encode *package* and take its current state as the saved baseline."""
        if not package.can_persist():
            raise NonPersistablePackage(package.id)
        doc = package.to_portable()
        package.reset_base_crc()
        logger.info('Saved package {!r}.'.format(package.id))
        return doc

    def __enter__(self):
        if self.__active:
            raise RuntimeError('Session is already active.')
        _context.append(self)
        self.__active = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        context = _context.pop()
        if context is not self:
            warnings.warn('Bad finalizer protocol may indicate a leak: Session is active, but not current.')
            _context.append(context)
            if self in _context:
                _context.remove(self)
        self.__active = False
        # Return False to indicate we have not handled any exceptions.
        return False


_context: typing.List[Session] = []


def get_context() -> Session:
    if not _context:
        _context.append(Session())
    return _context[-1]
