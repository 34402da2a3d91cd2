"""Core visualize-it exceptions.

Errors are raised where they are detected and carry the identifying context
(entity id, field, package id, type name, entry id) needed by a caller to
report or pre-flight the failure. Nothing in the kernel retries or swallows
these errors.
"""

__all__ = [
    'ConstructionViolation',
    'HistoryMisuse',
    'NonPersistablePackage',
    'PackageNotLoaded',
    'ProtocolError',
    'TypeNotInPackage',
    'UnresolvedType',
    'UnsupportedShape',
    'VisualizeItError',
]


class VisualizeItError(Exception):
    """Base exception for visualizeit package errors.

    Users should be able to use this base class to catch errors
    emitted by the persistence kernel.
    """


class ProtocolError(VisualizeItError):
    """A behavioral protocol has not been followed correctly.

    E.g. registering the same package id twice, or a change function that
    does not return the entity it mutated.
    """


class ConstructionViolation(VisualizeItError, ValueError):
    """Invalid or unknown named fields were supplied to a constructor."""
    def __init__(self, message: str, *, entity_id=None, type_name: str = None, field: str = None):
        super().__init__(message)
        self.entity_id = entity_id
        self.type_name = type_name
        self.field = field


class UnsupportedShape(VisualizeItError, TypeError):
    """A value in the encode-set has no encode, hash or clone dispatching.

    *operation* names the traversal (``'crc'``, ``'encode'``, ``'clone'``,
    ``'catalog'``). *entity_id* and *field* locate the innermost entity field
    holding the value and are filled in as the error propagates.
    """
    def __init__(self, operation: str, value):
        self.operation = operation
        self.value_type = type(value).__name__
        self.entity_id = None
        self.field = None
        super().__init__('{} does not support values of type {}'.format(operation, self.value_type))

    def locate(self, entity_id, field: str):
        """Record the innermost entity field that holds the unsupported value."""
        if self.entity_id is None:
            self.entity_id = entity_id
            self.field = field
            self.args = ('{} does not support values of type {} (entity {!r}, field {!r})'.format(
                self.operation, self.value_type, entity_id, field),)


class UnresolvedType(VisualizeItError, LookupError):
    """A (package id, type name) pair could not be resolved to a class reference."""
    def __init__(self, message: str, *, package_id: str, type_name: str):
        super().__init__(message)
        self.package_id = package_id
        self.type_name = type_name


class PackageNotLoaded(UnresolvedType):
    """The package named in a type reference is not registered."""
    def __init__(self, package_id: str, type_name: str):
        super().__init__(
            'Cannot resolve {}/{}: package {!r} is not loaded'.format(package_id, type_name, package_id),
            package_id=package_id,
            type_name=type_name)


class TypeNotInPackage(UnresolvedType):
    """The package is registered but does not catalog the requested type."""
    def __init__(self, package_id: str, type_name: str):
        super().__init__(
            'Cannot resolve {}/{}: type {!r} is not in package {!r}'.format(
                package_id, type_name, type_name, package_id),
            package_id=package_id,
            type_name=type_name)


class NonPersistablePackage(VisualizeItError):
    """The package contains code (raw classes) and can never be serialized."""
    def __init__(self, package_id: str):
        super().__init__('Package {!r} contains code and cannot be persisted'.format(package_id))
        self.package_id = package_id


class HistoryMisuse(VisualizeItError):
    """Undo or redo was requested where no such history step exists."""
    def __init__(self, message: str, *, entry_id: str, operation: str):
        super().__init__(message)
        self.entry_id = entry_id
        self.operation = operation
