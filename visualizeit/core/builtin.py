"""The package of built-in classes.

Documents refer to built-in types as ``core/<type name>``, e.g. the package
node of every document is ``{"smartType": "PackageContainer", "smartPkg": "core", ...}``.
The core package holds code, so it is never persisted.
"""

__all__ = ['BUILTIN_CLASSES', 'create_core_package']

from visualizeit import config
from visualizeit.core.package import PackageContainer
from visualizeit.core.pallet import Collage
from visualizeit.core.pallet import Comp
from visualizeit.core.pallet import Scene

BUILTIN_CLASSES = (Collage, Comp, PackageContainer, Scene)


def create_core_package() -> PackageContainer:
    return PackageContainer(id=config.CORE_PACKAGE_ID,
                            name='Core classes',
                            entries={'classes': list(BUILTIN_CLASSES)})
