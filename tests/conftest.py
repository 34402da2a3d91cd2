"""Shared fixtures for the visualizeit tests."""
import logging

import pytest

from visualizeit import Session

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


@pytest.fixture
def session():
    """Provide a fresh, active Session with only the core package loaded."""
    with Session() as session:
        yield session
