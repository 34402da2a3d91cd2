"""Packages: the unit of persistence and of type ownership.

A :py:class:`PackageContainer` owns a tree of entries. The tree is made of
namespace dicts and lists whose leaves are entities and/or real classes::

    PackageContainer(id='pkgA', entries={
        'scenes': [scene1, {'More Depth': [scene2]}],
        'collages': [collage1],
    })

At construction, the package catalogs its leaves. Entities become package
entries: they are indexed by id, their parent is set to the package, and
pseudo-class masters are additionally cataloged as types named by their id.
Real classes are cataloged as types by their declared name. A package that
contains real classes holds code, which is never persisted, so
:py:meth:`PackageContainer.can_persist` is False for it.

Loading a package from portable form takes two passes, because an instance
of a pseudo-class can appear in the document before, or nested more shallowly
than, its master. See :py:meth:`PackageContainer.from_portable`.
"""
from __future__ import annotations

__all__ = ['PackageContainer']

import logging
import typing

from visualizeit import config
from visualizeit.core import codec
from visualizeit.core._detail import attach_class_ref
from visualizeit.core._detail import attached_class_ref
from visualizeit.core.classref import ClassReference
from visualizeit.core.entity import Entity
from visualizeit.core.entity import Role
from visualizeit.core.pseudoclass import is_pseudo_class_master
from visualizeit.exceptions import ConstructionViolation
from visualizeit.exceptions import NonPersistablePackage
from visualizeit.exceptions import ProtocolError
from visualizeit.exceptions import TypeNotInPackage
from visualizeit.exceptions import UnsupportedShape

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

EntryTree = typing.Union[typing.Mapping[str, typing.Any], typing.Sequence[typing.Any]]


class PackageContainer(Entity, type_name='PackageContainer'):
    """Own a tree of entries and catalog the types it defines.

    Attributes:
        entries: the namespace tree of entities and classes.
        contains_code: True if any entry is a real class.
        change_manager: the ChangeManager notified of changes to trackable
            entries, assigned when a Session registers the package.
    """
    role = Role.PACKAGE

    def __init__(self, *, id: str, name: str = None, entries: EntryTree = None, **unknown):
        super().__init__(id=id, name=name, **unknown)
        self.entries = {} if entries is None else entries
        self.contains_code = False
        self.change_manager = None
        self._class_catalog: typing.Dict[str, ClassReference] = {}
        self._entry_catalog: typing.Dict[str, Entity] = {}
        if not isinstance(self.entries, (dict, list, tuple)):
            raise ConstructionViolation('Package entries must be a dict or a list.', entity_id=id,
                                        type_name='PackageContainer', field='entries')
        try:
            self._catalog(self.entries)
        except UnsupportedShape as e:
            e.locate(self.id, 'entries')
            raise
        self.reset_base_crc()

    def get_encoding_props(self, for_cloning: bool = False):
        return super().get_encoding_props(for_cloning) + ['entries']

    def _catalog(self, node):
        if isinstance(node, dict):
            for value in node.values():
                self._catalog(value)
        elif isinstance(node, (list, tuple)):
            for value in node:
                self._catalog(value)
        elif isinstance(node, type):
            self._catalog_class(node)
        elif isinstance(node, Entity):
            self._catalog_entry(node)
        else:
            raise UnsupportedShape('catalog', node)

    def _catalog_class(self, cls: type):
        class_ref = attached_class_ref(cls)
        if class_ref is None or class_ref.package_id != self.id:
            class_ref = ClassReference(cls, self.id)
            attach_class_ref(cls, class_ref)
        self._add_class_ref(class_ref)
        self.contains_code = True

    def _catalog_entry(self, entry: Entity):
        if entry.id in self._entry_catalog:
            raise ConstructionViolation('Duplicate entry id {!r} in package {!r}'.format(entry.id, self.id),
                                        entity_id=entry.id, type_name='PackageContainer', field='entries')
        self._entry_catalog[entry.id] = entry
        entry.set_parent(self)
        entry.mark_as_pkg_entry()
        if is_pseudo_class_master(entry):
            class_ref = entry.get_template_ref()
            if class_ref is None or class_ref.package_id != self.id:
                class_ref = ClassReference(entry, self.id)
                entry.set_template_ref(class_ref)
            self._add_class_ref(class_ref)

    def _add_class_ref(self, class_ref: ClassReference):
        type_name = class_ref.get_type_name()
        if type_name in self._class_catalog:
            raise ConstructionViolation('Duplicate type name {!r} in package {!r}'.format(type_name, self.id),
                                        entity_id=self.id, type_name=type_name, field='entries')
        self._class_catalog[type_name] = class_ref

    def can_persist(self) -> bool:
        return not self.contains_code

    def to_portable(self) -> dict:
        if not self.can_persist():
            raise NonPersistablePackage(self.id)
        return super().to_portable()

    def lookup_class_ref(self, type_name: str) -> ClassReference:
        """Get the ClassReference cataloged as *type_name*."""
        try:
            return self._class_catalog[type_name]
        except KeyError as e:
            raise TypeNotInPackage(self.id, type_name) from e

    def has_type(self, type_name: str) -> bool:
        return type_name in self._class_catalog

    def class_refs(self) -> typing.List[ClassReference]:
        return list(self._class_catalog.values())

    def get_entry(self, entry_id: str) -> typing.Optional[Entity]:
        return self._entry_catalog.get(entry_id)

    def iter_entries(self) -> typing.Iterator[Entity]:
        return iter(self._entry_catalog.values())

    @classmethod
    def from_portable(cls, doc: dict, resolver: codec.Resolver = None, registry=None) -> 'PackageContainer':
        """Hydrate a package document.

        Phase 1 decodes every node flagged as a pseudo-class master, so that
        its type is known before any instance is created. The masters replace
        their nodes in a copy of the document tree; *doc* is not modified.

        Phase 2 decodes the copied tree. Type names of this package are looked
        up among the Phase 1 masters first; everything else goes through
        *resolver* and then *registry*. The hydrated masters pass through
        untouched, so every instance refers to the master object that ends
        up in the package.
        """
        if not codec.is_tagged(doc):
            raise ProtocolError('Not a package document: missing {!r}.'.format(config.TYPE_KEY))
        package_id = doc.get('id')
        masters: typing.Dict[str, ClassReference] = {}

        def resolve(pkg_id, type_name):
            if pkg_id == package_id and type_name in masters:
                return masters[type_name]
            if resolver is not None:
                return resolver(pkg_id, type_name)
            return None

        def hydrate_masters(node):
            if isinstance(node, list):
                return [hydrate_masters(element) for element in node]
            if isinstance(node, dict):
                if node.get(config.MASTER_KEY):
                    master = Entity.from_portable(node, resolve, registry)
                    if master.id in masters:
                        raise ConstructionViolation(
                            'Duplicate pseudo-class {!r} in package {!r}'.format(master.id, package_id),
                            entity_id=master.id, type_name=master.id)
                    class_ref = ClassReference(master, package_id)
                    master.set_template_ref(class_ref)
                    masters[master.id] = class_ref
                    return master
                return {key: hydrate_masters(value) for key, value in node.items()}
            return node

        prepared = hydrate_masters(doc)
        package = Entity.from_portable(prepared, resolve, registry)
        if not isinstance(package, PackageContainer):
            raise ProtocolError('Document {!r} decoded to {!r}, not a package.'.format(package_id, package))
        logger.info('Hydrated package {!r} with {} pseudo-class(es).'.format(package.id, len(masters)))
        return package
