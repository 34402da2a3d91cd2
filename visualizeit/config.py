"""Package-wide settings.

Values are read once, at import. The undo history bound can be overridden for
a process with the ``VISUALIZEIT_UNDO_LIMIT`` environment variable, or per
ChangeManager through its *limit* argument.
"""

__all__ = ['CORE_PACKAGE_ID', 'MASTER_KEY', 'PKG_KEY', 'TYPE_KEY', 'UNDO_LIMIT']

import logging
import os

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

# Keys reserved in portable documents. Kept for compatibility with saved documents.
TYPE_KEY = 'smartType'
PKG_KEY = 'smartPkg'
MASTER_KEY = 'isPseudoClassMaster'

# Package id of the built-in classes registered by every Session.
CORE_PACKAGE_ID = 'core'


def _undo_limit(default: int = 100) -> int:
    value = os.environ.get('VISUALIZEIT_UNDO_LIMIT')
    if value is None:
        return default
    try:
        limit = int(value)
    except ValueError:
        logger.warning('Ignoring non-integer VISUALIZEIT_UNDO_LIMIT={!r}'.format(value))
        return default
    if limit < 1:
        logger.warning('Ignoring VISUALIZEIT_UNDO_LIMIT={}; the limit must be positive.'.format(limit))
        return default
    return limit


UNDO_LIMIT: int = _undo_limit()
