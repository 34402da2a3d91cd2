"""Entity base class for persistent, clonable, change-tracked objects.

Every object of a diagram package derives from :py:class:`Entity`. A concrete
class declares its persistent state in one place, by overriding
:py:meth:`Entity.get_encoding_props`, and inherits generic implementations of

* CRC computation (:py:meth:`Entity.compute_crc`),
* encoding to portable form (:py:meth:`Entity.to_portable`) and decoding from
  it (:py:meth:`Entity.from_portable`),
* deep cloning with overrides (:py:meth:`Entity.deep_clone`),
* change propagation up the containment tree (:py:meth:`Entity.trickle_up_change`).

Entities are constructed with keyword-only named fields. The names of the
encode-set are the names of the constructor arguments, so that decoding and
cloning can rebuild any entity through its constructor::

    class Valve(Comp, type_name='Valve'):
        ...

    valve = Valve(id='v1', y=20)
    valve.to_portable()
    # {'smartType': 'Valve', 'smartPkg': 'pkgA', 'id': 'v1', 'y': 20}

Containment is tracked with a non-owning *parent* (the primary tree) and an
optional non-owning *view_parent* (e.g. a scene shown inside a collage).
"""
from __future__ import annotations

__all__ = ['Entity', 'Role']

import enum
import logging
import typing

from visualizeit import config
from visualizeit.core import codec
from visualizeit.core._detail import attached_class_ref
from visualizeit.core._detail import declared_type_name
from visualizeit.core._detail import set_type_name
from visualizeit.core.dispmode import DispMode
from visualizeit.core.pseudoclass import PseudoClass
from visualizeit.core.pseudoclass import is_pseudo_class_master
from visualizeit.exceptions import ConstructionViolation
from visualizeit.exceptions import ProtocolError
from visualizeit.exceptions import UnsupportedShape

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

EncodingProp = typing.Union[str, typing.Tuple[str, typing.Any]]

_NO_DEFAULT = object()


class Role(enum.Enum):
    """Structural role of an entity class."""
    ENTITY = 'entity'
    PACKAGE = 'package'


def check_unknown_fields(cls: type, entity_id, unknown: typing.Mapping):
    """Raise ConstructionViolation if a constructor received fields it does not accept."""
    if unknown:
        names = sorted(unknown)
        raise ConstructionViolation(
            '{} got unknown field(s) {}'.format(cls.__qualname__, ', '.join(names)),
            entity_id=entity_id,
            type_name=declared_type_name(cls) or cls.__qualname__,
            field=names[0])


class Entity:
    """Base class for objects of the persistent containment tree.

    Subclasses declare a stable type name with the *type_name* class keyword
    before they can be cataloged by a package.

    Subclasses with additional state must accept that state as keyword
    arguments, pass any remaining keyword arguments to ``super().__init__()``,
    and extend :py:meth:`get_encoding_props`.
    """
    role: typing.ClassVar[Role] = Role.ENTITY
    tracks_size: typing.ClassVar[bool] = False
    pseudo_class: typing.Optional[PseudoClass] = None

    def __init_subclass__(cls, type_name: str = None, **kwargs):
        super().__init_subclass__(**kwargs)
        if type_name is not None:
            set_type_name(cls, type_name)

    def __init__(self, *, id: str, name: str = None, **unknown):
        check_unknown_fields(type(self), id, unknown)
        if not isinstance(id, str) or not id:
            raise ConstructionViolation('Entity id must be a non-empty string, not {!r}'.format(id),
                                        entity_id=id,
                                        type_name=declared_type_name(type(self)),
                                        field='id')
        if name is not None and not isinstance(name, str):
            raise ConstructionViolation('Entity name must be a string, not {!r}'.format(name),
                                        entity_id=id,
                                        type_name=declared_type_name(type(self)),
                                        field='name')
        self.id = id
        self.name = id if name is None else name
        self.parent: typing.Optional[Entity] = None
        self.view_parent: typing.Optional[Entity] = None
        self.disp_mode = DispMode.VIEW
        self._crc: typing.Optional[int] = None
        self._base_crc: typing.Optional[int] = None
        self._size = None
        self._pkg_entry = False
        self._template_ref = None

    def __repr__(self):
        return '<{} {!r}>'.format(type(self).__qualname__, self.id)

    def get_encoding_props(self, for_cloning: bool = False) -> typing.List[EncodingProp]:
        """Declare the persistent state of the entity.

        Returns an ordered list of attribute names or ``(name, default)``
        pairs. A field equal to its default is omitted from the portable form.
        With *for_cloning*, the list may include state that an encoded
        pseudo-class instance would get back from its master.

        Subclasses extend the list of the base class::

            def get_encoding_props(self, for_cloning=False):
                return super().get_encoding_props(for_cloning) + [('x', 0), ('y', 0)]

        """
        return ['id', ('name', self.id)]

    def _encoding_items(self, for_cloning: bool = False):
        for prop in self.get_encoding_props(for_cloning):
            if isinstance(prop, tuple):
                name, default = prop
            else:
                name, default = prop, _NO_DEFAULT
            yield name, getattr(self, name), default

    def get_encoding_defaults(self) -> typing.Dict[str, typing.Any]:
        """Map the fields of the encode-set that declare a default to that default."""
        return {name: default for name, _, default in self._encoding_items() if default is not _NO_DEFAULT}

    def compute_crc(self) -> int:
        """Get the checksum of the encode-set, computing it if not cached."""
        if self._crc is None:
            accum = 0
            for name, value, _ in self._encoding_items():
                accum = codec.fold_crc(name, accum)
                try:
                    accum = codec.fold_crc(value, accum)
                except UnsupportedShape as e:
                    e.locate(self.id, name)
                    raise
            self._crc = accum
        return self._crc

    def invalidate_crc(self):
        """Drop the cached CRC of this entity and of everything it contains."""
        for _, value, _ in self._encoding_items():
            for child in codec.iter_entities(value):
                child.invalidate_crc()
        self._crc = None

    def get_base_crc(self) -> typing.Optional[int]:
        return self._base_crc

    def reset_base_crc(self):
        """Take the current state as the baseline, for this entity and everything it contains."""
        for _, value, _ in self._encoding_items():
            for child in codec.iter_entities(value):
                child.reset_base_crc()
        previous = self._base_crc
        self._base_crc = self.compute_crc()
        if previous != self._base_crc and self.is_trackable():
            self._notify_changes()

    def is_in_sync(self) -> bool:
        """True if the entity is unchanged since its baseline was last reset."""
        return self._base_crc == self.compute_crc()

    def is_out_of_sync(self) -> bool:
        """True for a pseudo-class instance whose master has changed since instantiation."""
        return self.pseudo_class is not None and self.pseudo_class.is_out_of_sync()

    def get_class_ref(self):
        """Get the ClassReference this entity is encoded as an instance of."""
        marker = self.pseudo_class
        if marker is not None and marker.is_instance():
            class_ref = marker.master.get_template_ref()
        else:
            class_ref = attached_class_ref(type(self))
        if class_ref is None:
            raise ProtocolError('{!r} has no class reference: its type is not cataloged by any package.'.format(self))
        return class_ref

    def get_template_ref(self):
        """Get the ClassReference for instantiating this pseudo-class master, if cataloged."""
        return self._template_ref

    def set_template_ref(self, class_ref):
        if not is_pseudo_class_master(self):
            raise ProtocolError('{!r} is not a pseudo-class master.'.format(self))
        self._template_ref = class_ref

    def to_portable(self) -> dict:
        """Encode the entity and its contents as a JSON-safe dict."""
        class_ref = self.get_class_ref()
        node = {config.TYPE_KEY: class_ref.get_type_name(), config.PKG_KEY: class_ref.package_id}
        if is_pseudo_class_master(self):
            node[config.MASTER_KEY] = True
        for name, value, default in self._encoding_items():
            # 0.0 is not omitted for a default of 0: decoding would restore an int and change the CRC.
            if default is not _NO_DEFAULT and type(value) is type(default) and value == default:
                continue
            try:
                node[name] = codec.encode(value)
            except UnsupportedShape as e:
                e.locate(self.id, name)
                raise
        return node

    @staticmethod
    def from_portable(node, resolver: codec.Resolver = None, registry=None):
        """Reconstruct values, including entities, from portable form.

        Type tags are resolved with *resolver* first, if given. A resolver
        returns None for names it does not know, deferring to *registry*
        (by default, the registry of the current Session).
        """
        if registry is None:
            from visualizeit.context import get_context
            registry = get_context().registry

        def resolve(package_id, type_name):
            if resolver is not None:
                class_ref = resolver(package_id, type_name)
                if class_ref is not None:
                    return class_ref
            return registry.resolve(package_id, type_name)

        return codec.decode(node, resolve)

    def deep_clone(self, **overrides):
        """Create an independent copy, replacing top-level fields with *overrides*."""
        fields = {}
        for name, value, _ in self._encoding_items(for_cloning=True):
            if name in overrides:
                continue
            try:
                fields[name] = codec.clone(value)
            except UnsupportedShape as e:
                e.locate(self.id, name)
                raise
        fields.update(overrides)
        duplicate = type(self)(**fields)
        if self.pseudo_class is not None and self.pseudo_class.is_instance():
            duplicate.pseudo_class = self.pseudo_class.copy()
        return duplicate

    def trickle_up_change(self, size_changed: bool = True):
        """Refresh cached state after a mutation and propagate to the containers.

        Size-tracking entities re-measure themselves (when *size_changed*)
        and are told about a new size through bind_size_changes(). The CRC
        is recomputed; a trackable entry whose CRC changed reports to the
        change manager of its package. Then the parent and the view parent
        are refreshed in turn.
        """
        if self.tracks_size and size_changed:
            old_size = self._size
            self._size = None
            new_size = self.get_size()
            self._size = new_size
            size_changed = old_size != new_size
            if size_changed:
                self.bind_size_changes(old_size, new_size)

        previous = self._crc
        self._crc = None
        if self.compute_crc() != previous and self.is_trackable():
            self._notify_changes()

        if self.parent is not None:
            self.parent.trickle_up_change(size_changed)
        if self.view_parent is not None:
            self.view_parent.trickle_up_change(size_changed)

    def set_parent(self, parent: typing.Optional[Entity]):
        self.parent = parent

    def set_view_parent(self, view_parent: typing.Optional[Entity]):
        self.view_parent = view_parent

    def get_view_parent(self) -> typing.Optional[Entity]:
        """Get the containing entity for display purposes."""
        return self.view_parent if self.view_parent is not None else self.parent

    def mark_as_pkg_entry(self):
        self._pkg_entry = True

    def is_pkg_entry(self) -> bool:
        return self._pkg_entry

    def is_package(self) -> bool:
        return self.role is Role.PACKAGE

    def is_trackable(self) -> bool:
        """Trackable entries (packages and their top-level entries) own an undo history."""
        return self.is_package() or self._pkg_entry

    def get_pkg(self):
        """Get the package containing this entity, if any."""
        entity = self
        while entity is not None and not entity.is_package():
            entity = entity.parent
        return entity

    def get_pkg_entry(self) -> typing.Optional[Entity]:
        """Get the top-level package entry containing this entity, if any."""
        entity = self
        while entity is not None and not entity.is_pkg_entry():
            entity = entity.parent
        return entity

    def get_trackable_entry(self) -> typing.Optional[Entity]:
        entity = self
        while entity is not None and not entity.is_trackable():
            entity = entity.parent
        return entity

    def trackable_id(self) -> str:
        """Identify the undo history of a trackable entry.

        The id of a package is its own id; an entry is qualified by the id
        of its package as ``'<package id>/<entry id>'``.
        """
        if self.is_package():
            return self.id
        if self._pkg_entry:
            package = self.get_pkg()
            if package is not None:
                return '{}/{}'.format(package.id, self.id)
        raise ProtocolError('{!r} is not a trackable entry.'.format(self))

    def can_handle_disp_mode(self, disp_mode: DispMode) -> bool:
        return True

    def set_disp_mode(self, disp_mode: DispMode) -> bool:
        """Switch the display mode. Returns False if the mode was refused."""
        if not isinstance(disp_mode, DispMode):
            raise TypeError('Expected a DispMode, got {!r}'.format(disp_mode))
        if not self.can_handle_disp_mode(disp_mode):
            logger.warning('{!r} cannot be displayed in {} mode.'.format(self, disp_mode.value))
            return False
        if disp_mode is DispMode.EDIT:
            package = self.get_pkg()
            if package is not None and not package.can_persist():
                logger.warning('{!r} is in package {!r}, which contains code and cannot be edited.'.format(
                    self, package.id))
                return False
        self.disp_mode = disp_mode
        if self.is_trackable():
            self._notify_changes()
        return True

    def _notify_changes(self):
        package = self.get_pkg()
        manager = getattr(package, 'change_manager', None)
        if manager is not None:
            manager.entry_changed(self)


@codec.fold_crc.register(Entity)
def _(value: Entity, accum: int) -> int:
    return codec.fold_crc(value.compute_crc(), accum)


@codec.encode.register(Entity)
def _(value: Entity) -> dict:
    return value.to_portable()


@codec.clone.register(Entity)
def _(value: Entity) -> Entity:
    return value.deep_clone()


@codec.iter_entities.register(Entity)
def _(value: Entity) -> typing.Iterator:
    yield value
