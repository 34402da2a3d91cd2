"""Test Session activation and package persistence through a Session."""
import logging

import pytest

from visualizeit import get_context
from visualizeit import Session
from visualizeit.core import Comp
from visualizeit.core import Entity
from visualizeit.core import PackageContainer
from visualizeit.core import Scene
from visualizeit.exceptions import NonPersistablePackage
from visualizeit.exceptions import PackageNotLoaded

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


class Switch(Comp, type_name='Switch'):
    pass


def test_session_stack():
    outer = get_context()
    assert isinstance(outer, Session)
    with Session() as first:
        assert get_context() is first
        with Session() as second:
            assert get_context() is second
        assert get_context() is first
    assert get_context() is outer


def test_sessions_are_independent():
    with Session() as first:
        first.register_package(PackageContainer(id='pkgA', entries=[Scene(id='Scene1')]))
        with Session() as second:
            assert 'pkgA' not in second.registry
            with pytest.raises(PackageNotLoaded):
                Entity.from_portable({'smartType': 'Scene1', 'smartPkg': 'pkgA', 'id': 's'})
        instance = Entity.from_portable({'smartType': 'Scene1', 'smartPkg': 'pkgA', 'id': 's'})
        assert instance.pseudo_class.master is first.registry.get_entry('pkgA', 'Scene1')


def test_session_without_core():
    session = Session(core=False)
    assert len(session.registry) == 0
    with pytest.raises(PackageNotLoaded):
        Entity.from_portable({'smartType': 'Scene', 'smartPkg': 'core', 'id': 's'}, registry=session.registry)


def test_open_and_save(session):
    session.register_package(PackageContainer(id='pkgSwitches', entries=[Switch]))
    doc = PackageContainer(id='pkgA', entries=[Scene(id='Scene1', comps=[Switch(id='s1', x=3)])]).to_portable()

    package = session.open_package(doc)
    assert session.registry.get_package('pkgA') is package
    assert package.change_manager is session.change_manager
    assert session.change_manager.get_monitor('pkgA/Scene1').in_sync
    assert session.save_package(package) == doc

    with pytest.raises(NonPersistablePackage):
        session.save_package(session.registry.get_package('pkgSwitches'))
