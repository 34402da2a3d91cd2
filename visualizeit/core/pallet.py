"""Diagram entities: components, and the pallets that lay them out.

A :py:class:`Comp` is a positioned diagram component. Concrete components are
code-defined classes, cataloged by a package that therefore holds code.

A :py:class:`Pallet` is a container with a measurable size. The rendering
layer learns about size changes through :py:meth:`Pallet.bind_size_changes`,
which is called from :py:meth:`~visualizeit.core.entity.Entity.trickle_up_change`.

A :py:class:`Scene` is a pallet of components and supports pseudo-class
semantics: a scene in a package is a master, and a :py:class:`Collage` holds
instances of scene masters. An instance does not encode its components, which
it gets back from the master when it is decoded.
"""
from __future__ import annotations

__all__ = ['Collage', 'Comp', 'Pallet', 'Scene', 'Size']

import logging
import typing

from visualizeit.core.entity import Entity
from visualizeit.core.pseudoclass import PseudoClass
from visualizeit.core.pseudoclass import is_pseudo_class_master
from visualizeit.exceptions import ConstructionViolation

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


class Size(typing.NamedTuple):
    width: int
    height: int


SizeListener = typing.Callable[[typing.Optional[Size], Size], None]

DEFAULT_SIZE = {'width': 1000, 'height': 600}


def _check_coordinate(entity_id, field: str, value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConstructionViolation('{} must be a number, not {!r}'.format(field, value),
                                    entity_id=entity_id, field=field)


def _adopt(owner: Entity, field: str, children, cls: type = Entity) -> list:
    """Validate a list of child entities and make *owner* their parent."""
    if not isinstance(children, list):
        raise ConstructionViolation('{} must be a list'.format(field), entity_id=owner.id, field=field)
    seen = set()
    for child in children:
        if not isinstance(child, cls):
            raise ConstructionViolation('{} may only hold {} entities, not {!r}'.format(field, cls.__name__, child),
                                        entity_id=owner.id, field=field)
        if child.id in seen:
            raise ConstructionViolation('Duplicate id {!r} in {}'.format(child.id, field),
                                        entity_id=owner.id, field=field)
        seen.add(child.id)
        child.set_parent(owner)
    return children


class Comp(Entity, type_name='Comp'):
    """A diagram component positioned at (x, y)."""
    def __init__(self, *, id: str, name: str = None, x: float = 0, y: float = 0, **unknown):
        super().__init__(id=id, name=name, **unknown)
        _check_coordinate(id, 'x', x)
        _check_coordinate(id, 'y', y)
        self.x = x
        self.y = y

    def get_encoding_props(self, for_cloning: bool = False):
        return super().get_encoding_props(for_cloning) + [('x', 0), ('y', 0)]


class Pallet(Entity):
    """A container whose size is tracked for the rendering layer.

    Renderers subscribe with :py:meth:`add_size_listener`. Subclasses
    implement :py:meth:`get_size`.
    """
    tracks_size = True

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._size_listeners: typing.List[SizeListener] = []

    def get_size(self) -> Size:
        raise NotImplementedError

    def add_size_listener(self, listener: SizeListener):
        self._size_listeners.append(listener)

    def remove_size_listener(self, listener: SizeListener):
        self._size_listeners.remove(listener)

    def bind_size_changes(self, old_size: typing.Optional[Size], new_size: Size):
        """Report a new size. *old_size* is None on the first measurement."""
        logger.debug('{!r} resized from {} to {}'.format(self, old_size, new_size))
        for listener in list(self._size_listeners):
            listener(old_size, new_size)


class Scene(Pallet, type_name='Scene'):
    """A pallet of components that can serve as a pseudo-class.

    A constructed scene is a master. Instances, created through a
    ClassReference to the master, are positioned at (x, y) in their container.
    """
    def __init__(self, *, id: str, name: str = None, comps: typing.List[Entity] = None,
                 size: typing.Mapping[str, int] = None, x: float = 0, y: float = 0, **unknown):
        super().__init__(id=id, name=name, **unknown)
        self.comps = _adopt(self, 'comps', [] if comps is None else comps)
        self.size = dict(DEFAULT_SIZE) if size is None else size
        for dimension in ('width', 'height'):
            value = self.size.get(dimension) if isinstance(self.size, dict) else None
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConstructionViolation('size must have a positive integer {}, not {!r}'.format(dimension, value),
                                            entity_id=id, type_name='Scene', field='size')
        _check_coordinate(id, 'x', x)
        _check_coordinate(id, 'y', y)
        self.x = x
        self.y = y
        self.pseudo_class = PseudoClass()

    def get_encoding_props(self, for_cloning: bool = False):
        props = super().get_encoding_props(for_cloning) + [('x', 0), ('y', 0), ('size', DEFAULT_SIZE)]
        if for_cloning or is_pseudo_class_master(self):
            props.append('comps')
        return props

    def get_size(self) -> Size:
        return Size(self.size['width'], self.size['height'])

    def get_comp(self, comp_id: str) -> typing.Optional[Entity]:
        for comp in self.comps:
            if comp.id == comp_id:
                return comp
        return None


class Collage(Pallet, type_name='Collage'):
    """A pallet presenting several scene instances together."""
    def __init__(self, *, id: str, name: str = None, scenes: typing.List[Scene] = None, **unknown):
        super().__init__(id=id, name=name, **unknown)
        self.scenes = _adopt(self, 'scenes', [] if scenes is None else scenes, Scene)

    def get_encoding_props(self, for_cloning: bool = False):
        return super().get_encoding_props(for_cloning) + ['scenes']

    def get_size(self) -> Size:
        sizes = [scene.get_size() for scene in self.scenes]
        return Size(max((size.width for size in sizes), default=0),
                    max((size.height for size in sizes), default=0))

    def get_scene(self, scene_id: str) -> typing.Optional[Scene]:
        for scene in self.scenes:
            if scene.id == scene_id:
                return scene
        return None
