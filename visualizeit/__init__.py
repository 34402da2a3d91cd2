"""visualize-it object-persistence kernel.

Persist, clone and change-track diagram packages made of entities and
pseudo-classes.

Example::

    import visualizeit

    with visualizeit.Session() as session:
        package = session.open_package(document)
        ...
        document = session.save_package(package)

"""

__all__ = [
    'ChangeManager',
    'ClassReference',
    'ClassRegistry',
    'declare_type_name',
    'DispMode',
    'Entity',
    'get_context',
    'PackageContainer',
    'PseudoClass',
    'Session',
]

import logging

from visualizeit.changes import ChangeManager
from visualizeit.context import get_context
from visualizeit.context import Session
from visualizeit.core import ClassReference
from visualizeit.core import ClassRegistry
from visualizeit.core import declare_type_name
from visualizeit.core import DispMode
from visualizeit.core import Entity
from visualizeit.core import PackageContainer
from visualizeit.core import PseudoClass

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))
