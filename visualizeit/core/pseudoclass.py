"""Pseudo-classes: runtime-editable template objects that can be instantiated.

An entity that supports pseudo-class semantics carries a :py:class:`PseudoClass`
marker in its ``pseudo_class`` attribute. A freshly constructed entity is a
*master* (role TYPE): it is the template, and the id of the master is the
type name under which its package catalogs it. Instantiating the master through
a ClassReference produces a deep clone whose marker has role INSTANCE, a
back-reference to the master, and the master's CRC at the time of creation.

A later edit of the master does not touch its instances. Instead, each
instance can report that it is out of sync with its master, and some external
process decides when to resynchronize.
"""
from __future__ import annotations

__all__ = ['PseudoClass', 'PseudoClassRole', 'is_pseudo_class_instance', 'is_pseudo_class_master']

import enum
import logging
import typing

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

if typing.TYPE_CHECKING:
    from visualizeit.core.entity import Entity


class PseudoClassRole(enum.Enum):
    TYPE = 'type'
    INSTANCE = 'instance'


class PseudoClass:
    """Marker attached to entities with pseudo-class semantics.

    Attributes:
        role: TYPE for a master, INSTANCE for an instance.
        master: the master an instance was created from (None for a master).
        master_crc: the master's CRC when the instance was created (None for a master).
    """
    def __init__(self, role: PseudoClassRole = PseudoClassRole.TYPE, master: Entity = None, master_crc: int = None):
        if role is PseudoClassRole.INSTANCE and master is None:
            raise ValueError('A pseudo-class instance requires a master.')
        self.role = role
        self.master = master
        self.master_crc = master_crc

    @classmethod
    def instance_of(cls, master: Entity) -> 'PseudoClass':
        """Create the marker for a new instance of *master*."""
        return cls(PseudoClassRole.INSTANCE, master=master, master_crc=master.compute_crc())

    def copy(self) -> 'PseudoClass':
        return PseudoClass(self.role, master=self.master, master_crc=self.master_crc)

    def is_type(self) -> bool:
        return self.role is PseudoClassRole.TYPE

    def is_instance(self) -> bool:
        return self.role is PseudoClassRole.INSTANCE

    def is_out_of_sync(self) -> bool:
        """True when the master has changed since this instance was created."""
        if not self.is_instance():
            return False
        return self.master_crc != self.master.compute_crc()

    def __repr__(self):
        if self.is_type():
            return '<PseudoClass master>'
        return '<PseudoClass instance of {!r}>'.format(self.master.id)


def is_pseudo_class_master(obj) -> bool:
    marker = getattr(obj, 'pseudo_class', None)
    return marker is not None and marker.is_type()


def is_pseudo_class_instance(obj) -> bool:
    marker = getattr(obj, 'pseudo_class', None)
    return marker is not None and marker.is_instance()
