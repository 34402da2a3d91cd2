"""Uniform handles to instantiable types.

A :py:class:`ClassReference` wraps either a real (code-defined) class or a
pseudo-class master, together with the id of the package that owns it.
Encoding, decoding and the package catalogs deal only in ClassReferences, so
they need not care which kind of type they handle.

A real class must have declared a stable type name (see
:py:func:`visualizeit.core._detail.declare_type_name` and the *type_name*
keyword of :py:class:`~visualizeit.core.entity.Entity` subclasses). This is
checked once, when the reference is constructed. The type name of a
pseudo-class is the id of its master.
"""
from __future__ import annotations

__all__ = ['ClassReference']

import logging
import typing
import zlib

from visualizeit.core import codec
from visualizeit.core._detail import declared_type_name
from visualizeit.core.entity import Entity
from visualizeit.core.pseudoclass import PseudoClass
from visualizeit.core.pseudoclass import is_pseudo_class_master
from visualizeit.exceptions import ConstructionViolation

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


class ClassReference:
    """Reference a real class or a pseudo-class master owned by a package.

    Attributes:
        real_class: the referenced class, or None for a pseudo-class.
        template: the referenced pseudo-class master, or None for a real class.
        package_id: id of the owning package.
    """
    real_class: typing.Optional[type]
    template: typing.Optional[Entity]

    def __init__(self, target: typing.Union[type, Entity], package_id: str):
        if not isinstance(package_id, str) or not package_id:
            raise ConstructionViolation('A ClassReference requires a package id, not {!r}'.format(package_id))
        if isinstance(target, type):
            type_name = declared_type_name(target)
            if type_name is None:
                raise ConstructionViolation(
                    '{} must declare a stable type name to be referenced.'.format(target.__qualname__),
                    type_name=target.__qualname__)
            self.real_class = target
            self.template = None
            self._type_name = type_name
        elif isinstance(target, Entity) and is_pseudo_class_master(target):
            self.real_class = None
            self.template = target
            self._type_name = None
        else:
            raise ConstructionViolation(
                'A ClassReference targets a class or a pseudo-class master, not {!r}'.format(target))
        self.package_id = package_id
        logger.debug('Created {!r}'.format(self))

    def __repr__(self):
        kind = 'pseudo-class' if self.is_pseudo_class() else 'class'
        return '<ClassReference {} {}>'.format(kind, self.get_full_type_name())

    def is_pseudo_class(self) -> bool:
        return self.template is not None

    def get_type_name(self) -> str:
        if self.template is not None:
            return self.template.id
        return self._type_name

    def get_full_type_name(self) -> str:
        return '{}/{}'.format(self.package_id, self.get_type_name())

    def create_smart_object(self, **fields):
        """Instantiate the referenced type from named fields.

        A real class is called with *fields*. A pseudo-class master is deep
        cloned with *fields* as overrides, and the clone is marked as an
        instance of the master, recording the master's current CRC.
        """
        if self.real_class is not None:
            return self.real_class(**fields)
        instance = self.template.deep_clone(**fields)
        instance.pseudo_class = PseudoClass.instance_of(self.template)
        return instance

    def hydrate(self, **fields):
        """Instantiate the referenced type from the fields of a portable node.

        The node omits fields equal to their declared defaults. For a
        pseudo-class instance, those fields take the declared default rather
        than the value of the master. Defaults that depend on other fields,
        like ``name``, are evaluated for the instance being decoded.
        """
        if self.real_class is None:
            missing = {name: codec.clone(default)
                       for name, default in self.template.deep_clone(**fields).get_encoding_defaults().items()
                       if name not in fields}
            fields.update(missing)
        return self.create_smart_object(**fields)


@codec.fold_crc.register(ClassReference)
def _(value: ClassReference, accum: int) -> int:
    return zlib.crc32(value.get_full_type_name().encode('utf-8'), accum)


@codec.clone.register(ClassReference)
def _(value: ClassReference) -> ClassReference:
    return value
