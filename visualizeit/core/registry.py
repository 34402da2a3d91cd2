"""Map package ids to loaded packages and resolve type references."""
from __future__ import annotations

__all__ = ['ClassRegistry']

import logging
import typing

from visualizeit.core.entity import Entity
from visualizeit.exceptions import PackageNotLoaded
from visualizeit.exceptions import ProtocolError

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

if typing.TYPE_CHECKING:
    from visualizeit.core.classref import ClassReference
    from visualizeit.core.package import PackageContainer


class ClassRegistry:
    """Hold the loaded packages of a Session.

    Resolution always raises on failure, distinguishing a package that is
    not loaded (PackageNotLoaded) from a type missing from a loaded package
    (TypeNotInPackage).
    """
    def __init__(self):
        self._packages: typing.Dict[str, PackageContainer] = {}

    def __contains__(self, package_id: str) -> bool:
        return package_id in self._packages

    def __iter__(self) -> typing.Iterator[PackageContainer]:
        return iter(list(self._packages.values()))

    def __len__(self):
        return len(self._packages)

    def register(self, package: PackageContainer):
        if not isinstance(package, Entity) or not package.is_package():
            raise TypeError('Only packages can be registered, not {!r}'.format(package))
        if package.id in self._packages:
            raise ProtocolError('Package {!r} appears to be registered already.'.format(package.id))
        self._packages[package.id] = package
        logger.info('Registered package {!r}.'.format(package.id))

    def unregister(self, package_id: str) -> PackageContainer:
        try:
            package = self._packages.pop(package_id)
        except KeyError as e:
            raise ProtocolError('Package {!r} is not registered.'.format(package_id)) from e
        logger.info('Unregistered package {!r}.'.format(package_id))
        return package

    def get_package(self, package_id: str) -> typing.Optional[PackageContainer]:
        return self._packages.get(package_id)

    def get_entry(self, package_id: str, entry_id: str) -> typing.Optional[Entity]:
        package = self._packages.get(package_id)
        if package is None:
            return None
        return package.get_entry(entry_id)

    def resolve(self, package_id: str, type_name: str) -> ClassReference:
        package = self._packages.get(package_id)
        if package is None:
            raise PackageNotLoaded(package_id, type_name)
        return package.lookup_class_ref(type_name)
