"""Test package catalogs and two-phase hydration of package documents."""
import copy
import json
import logging

import pytest

from visualizeit.core import ClassReference
from visualizeit.core import Collage
from visualizeit.core import Comp
from visualizeit.core import PackageContainer
from visualizeit.core import Scene
from visualizeit.exceptions import ConstructionViolation
from visualizeit.exceptions import ProtocolError
from visualizeit.exceptions import TypeNotInPackage
from visualizeit.exceptions import UnsupportedShape

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


class Valve(Comp, type_name='Valve'):
    pass


def build_sandbox():
    """Build a package shaped like the editor's sandbox: nested scenes and a collage of scene instances."""
    scene1 = Scene(id='Scene1', comps=[Valve(id='v1', y=20), Valve(id='v2', x=40)],
                   size={'width': 400, 'height': 300})
    scene2 = Scene(id='Scene2', comps=[Valve(id='v3')])
    collage = Collage(id='Collage1', scenes=[
        ClassReference(scene1, 'sandbox').create_smart_object(id='Scene1', x=0, y=0),
        ClassReference(scene2, 'sandbox').create_smart_object(id='Scene2', x=400),
    ])
    return PackageContainer(id='sandbox', name='Sandbox', entries={
        'scenes': [scene1, {'More Depth': [scene2]}],
        'collages': [collage],
    })


@pytest.fixture
def valves(session):
    return session.register_package(PackageContainer(id='pkgValves', entries=[Valve]))


def test_catalogs(valves):
    package = build_sandbox()
    scene1 = package.get_entry('Scene1')
    scene2 = package.get_entry('Scene2')
    collage = package.get_entry('Collage1')
    assert isinstance(collage, Collage)
    assert package.get_entry('missing') is None
    assert sorted(entry.id for entry in package.iter_entries()) == ['Collage1', 'Scene1', 'Scene2']
    for entry in (scene1, scene2, collage):
        assert entry.parent is package
        assert entry.is_pkg_entry()
    # Instances inside the collage are not package entries.
    assert not collage.scenes[0].is_pkg_entry()
    assert collage.scenes[0].parent is collage

    assert package.has_type('Scene1')
    assert package.lookup_class_ref('Scene2').template is scene2
    assert not package.has_type('Collage1')
    with pytest.raises(TypeNotInPackage) as exc_info:
        package.lookup_class_ref('Collage1')
    assert exc_info.value.package_id == 'sandbox'
    assert exc_info.value.type_name == 'Collage1'

    assert package.can_persist()
    assert package.is_in_sync()
    assert valves.has_type('Valve')
    assert not valves.can_persist()


def test_duplicate_entries():
    with pytest.raises(ConstructionViolation):
        PackageContainer(id='pkgDup', entries={'a': [Scene(id='s1')], 'b': [Scene(id='s1')]})


def test_unsupported_entries():
    with pytest.raises(UnsupportedShape) as exc_info:
        PackageContainer(id='pkgBad', entries=[Scene(id='s1'), 'not an entry'])
    assert exc_info.value.entity_id == 'pkgBad'
    assert exc_info.value.field == 'entries'
    with pytest.raises(ConstructionViolation):
        PackageContainer(id='pkgBad', entries='Scene1')


def test_sandbox_round_trip(valves):
    package = build_sandbox()
    doc = json.loads(json.dumps(package.to_portable()))
    pristine = copy.deepcopy(doc)

    restored = PackageContainer.from_portable(doc)
    # The document is not modified by hydration.
    assert doc == pristine
    assert isinstance(restored, PackageContainer)
    assert restored.compute_crc() == package.compute_crc()
    assert restored.to_portable() == doc
    assert restored.is_in_sync()


def test_instances_point_at_hydrated_masters(valves):
    doc = build_sandbox().to_portable()
    restored = PackageContainer.from_portable(doc)
    scene1 = restored.get_entry('Scene1')
    scene2 = restored.get_entry('Scene2')
    assert scene1.pseudo_class.is_type()
    assert scene1.get_template_ref() is restored.lookup_class_ref('Scene1')

    collage = restored.get_entry('Collage1')
    first, second = collage.scenes
    assert first.pseudo_class.master is scene1
    assert second.pseudo_class.master is scene2
    assert not first.is_out_of_sync()
    assert [comp.id for comp in first.comps] == ['v1', 'v2']
    assert first.comps[0] is not scene1.comps[0]
    assert second.x == 400


def test_instances_before_masters(valves):
    """Instances may appear earlier in the document than their master."""
    package = build_sandbox()
    doc = package.to_portable()
    entries = doc['entries']
    doc['entries'] = {'collages': entries['collages'], 'scenes': entries['scenes']}

    restored = PackageContainer.from_portable(doc)
    collage = restored.get_entry('Collage1')
    assert collage.scenes[0].pseudo_class.master is restored.get_entry('Scene1')
    assert restored.compute_crc() != package.compute_crc()
    assert collage.compute_crc() == package.get_entry('Collage1').compute_crc()


@pytest.mark.parametrize('fields', [
    {'id': 'i1', 'x': 0},
    {'id': 'i1', 'name': 'i1'},
    {'id': 'i1', 'size': {'width': 1000, 'height': 600}},
])
def test_instance_defaults_round_trip(valves, fields):
    """Instance fields left at their declared defaults do not fall back to the master's values."""
    master = Scene(id='Tank', name='Tank scene', x=5, size={'width': 400, 'height': 300}, comps=[Valve(id='v1')])
    instance = ClassReference(master, 'pkgTanks').create_smart_object(**fields)
    for name, value in fields.items():
        assert getattr(instance, name) == value
    package = PackageContainer(id='pkgTanks', entries={'scenes': [master], 'collages': [
        Collage(id='c1', scenes=[instance])]})

    doc = json.loads(json.dumps(package.to_portable()))
    restored = PackageContainer.from_portable(doc)
    copy_of_instance = restored.get_entry('c1').scenes[0]
    for name, value in fields.items():
        assert getattr(copy_of_instance, name) == value
    assert copy_of_instance.compute_crc() == instance.compute_crc()
    assert restored.compute_crc() == package.compute_crc()
    assert [comp.id for comp in copy_of_instance.comps] == ['v1']


def test_cross_package_instances(session, valves):
    sandbox = session.open_package(build_sandbox().to_portable())
    scene1 = sandbox.get_entry('Scene1')
    instance = sandbox.lookup_class_ref('Scene1').create_smart_object(id='borrowed')
    other = PackageContainer(id='pkgOther', entries=[Collage(id='c1', scenes=[instance])])
    doc = other.to_portable()
    assert doc['entries'][0]['scenes'][0]['smartType'] == 'Scene1'
    assert doc['entries'][0]['scenes'][0]['smartPkg'] == 'sandbox'

    restored = PackageContainer.from_portable(doc, registry=session.registry)
    assert restored.get_entry('c1').scenes[0].pseudo_class.master is scene1


def test_not_a_package_document(valves):
    with pytest.raises(ProtocolError):
        PackageContainer.from_portable({'id': 'untagged'})
    with pytest.raises(ProtocolError):
        PackageContainer.from_portable({'smartType': 'Valve', 'smartPkg': 'pkgValves', 'id': 'v1'})
