"""Implement composable details.

Bookkeeping for code-defined classes: their declared (stable) type names and
the ClassReference attached to them by the package that catalogs them.

A class's Python ``__name__`` is not a stable identity for persisted
documents, so a class participates in persistence only after declaring a
type name explicitly, either with the ``type_name`` keyword of an Entity
subclass or with the :py:func:`declare_type_name` decorator. The declaration
belongs to the class it was made on; subclasses do not inherit it.

The types here are not part of the public interface.
"""

from __future__ import annotations

__all__ = ['attach_class_ref', 'attached_class_ref', 'declare_type_name', 'declared_type_name', 'set_type_name']

import logging
import typing
import weakref

from visualizeit.exceptions import ConstructionViolation
from visualizeit.exceptions import ProtocolError

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

# We use WeakKeyDictionary because the keys are classes,
# and we don't intend to extend the life of the type objects (which might be temporary).
_declared_names: typing.MutableMapping[type, str] = weakref.WeakKeyDictionary()
_class_refs: typing.MutableMapping[type, typing.Any] = weakref.WeakKeyDictionary()

C = typing.TypeVar('C', bound=type)


def declare_type_name(name: str) -> typing.Callable[[C], C]:
    """Class decorator declaring the stable type name of *cls*.

    Example::

        @declare_type_name('Valve')
        class Valve(Comp):
            ...

    """
    def decorator(cls: C) -> C:
        set_type_name(cls, name)
        return cls
    return decorator


def set_type_name(cls: type, name: str):
    if not isinstance(name, str) or not name:
        raise ConstructionViolation('Type name must be a non-empty string.', type_name=repr(name))
    existing = _declared_names.get(cls)
    if existing is not None and existing != name:
        raise ProtocolError('{} already declares type name {!r}.'.format(cls.__qualname__, existing))
    _declared_names[cls] = name


def declared_type_name(cls: type) -> typing.Optional[str]:
    """Get the type name declared on exactly *cls*, or None."""
    return _declared_names.get(cls)


def attach_class_ref(cls: type, class_ref):
    """Bind *cls* to the ClassReference of the package that catalogs it.

    A class belongs to one package id. Re-attaching under the same package id
    (e.g. the core package rebuilt for a new Session) replaces the reference.
    """
    existing = _class_refs.get(cls)
    if existing is not None and existing.package_id != class_ref.package_id:
        raise ProtocolError('{} is already cataloged by package {!r}; cannot add it to {!r}.'.format(
            cls.__qualname__, existing.package_id, class_ref.package_id))
    _class_refs[cls] = class_ref


def attached_class_ref(cls: type):
    return _class_refs.get(cls)
