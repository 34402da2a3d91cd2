"""Object-persistence kernel.

Entities, class references, pseudo-classes, packages, and the registry that
resolves type references while decoding.
"""

__all__ = [
    'ClassReference',
    'ClassRegistry',
    'Collage',
    'Comp',
    'declare_type_name',
    'DispMode',
    'Entity',
    'PackageContainer',
    'Pallet',
    'PseudoClass',
    'PseudoClassRole',
    'Scene',
    'Size',
]

from visualizeit.core._detail import declare_type_name
from visualizeit.core.classref import ClassReference
from visualizeit.core.dispmode import DispMode
from visualizeit.core.entity import Entity
from visualizeit.core.package import PackageContainer
from visualizeit.core.pallet import Collage
from visualizeit.core.pallet import Comp
from visualizeit.core.pallet import Pallet
from visualizeit.core.pallet import Scene
from visualizeit.core.pallet import Size
from visualizeit.core.pseudoclass import PseudoClass
from visualizeit.core.pseudoclass import PseudoClassRole
from visualizeit.core.registry import ClassRegistry
