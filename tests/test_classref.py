"""Test class references, declared type names, and pseudo-class instantiation."""
import logging

import pytest

from visualizeit.core import ClassReference
from visualizeit.core import Comp
from visualizeit.core import declare_type_name
from visualizeit.core import Entity
from visualizeit.core import PackageContainer
from visualizeit.core import PseudoClassRole
from visualizeit.core import Scene
from visualizeit.exceptions import ConstructionViolation
from visualizeit.exceptions import ProtocolError

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


class Pump(Comp, type_name='Pump'):
    pass


class FastPump(Pump):
    """Inherits from Pump but declares no type name of its own."""


@declare_type_name('Tank')
class Tank:
    def __init__(self, *, volume=1):
        self.volume = volume


def test_real_class_reference():
    class_ref = ClassReference(Pump, 'pkgCode')
    assert not class_ref.is_pseudo_class()
    assert class_ref.get_type_name() == 'Pump'
    assert class_ref.get_full_type_name() == 'pkgCode/Pump'
    pump = class_ref.create_smart_object(id='p1', x=3)
    assert isinstance(pump, Pump)
    assert (pump.id, pump.x) == ('p1', 3)
    assert pump.pseudo_class is None


def test_declared_name_is_not_inherited():
    with pytest.raises(ConstructionViolation):
        ClassReference(FastPump, 'pkgCode')


def test_declared_name_decorator():
    class_ref = ClassReference(Tank, 'pkgCode')
    assert class_ref.get_type_name() == 'Tank'
    assert class_ref.create_smart_object(volume=3).volume == 3

    with pytest.raises(ProtocolError):
        declare_type_name('Cistern')(Tank)


def test_invalid_targets():
    with pytest.raises(ConstructionViolation):
        ClassReference(Pump(id='p1'), 'pkgCode')
    with pytest.raises(ConstructionViolation):
        ClassReference('Pump', 'pkgCode')
    with pytest.raises(ConstructionViolation):
        ClassReference(Pump, '')


def test_pseudo_class_instance():
    master = Scene(id='Mixer', comps=[Pump(id='p1', y=20)], size={'width': 400, 'height': 300})
    assert master.pseudo_class.role is PseudoClassRole.TYPE

    class_ref = ClassReference(master, 'pkgA')
    assert class_ref.is_pseudo_class()
    assert class_ref.get_type_name() == 'Mixer'
    assert class_ref.get_full_type_name() == 'pkgA/Mixer'

    instance = class_ref.create_smart_object(id='mixer1', x=50)
    assert isinstance(instance, Scene)
    assert instance.pseudo_class.is_instance()
    assert instance.pseudo_class.master is master
    assert instance.pseudo_class.master_crc == master.compute_crc()
    assert (instance.id, instance.x, instance.size) == ('mixer1', 50, {'width': 400, 'height': 300})
    assert [comp.id for comp in instance.comps] == ['p1']
    assert instance.comps[0] is not master.comps[0]
    assert instance.comps[0].parent is instance

    # Instances are not templates.
    with pytest.raises(ConstructionViolation):
        ClassReference(instance, 'pkgA')


def test_staleness():
    master = Scene(id='Mixer', comps=[Pump(id='p1')])
    instance = ClassReference(master, 'pkgA').create_smart_object(id='mixer1')
    instance_crc = instance.compute_crc()
    assert not instance.is_out_of_sync()

    master.comps[0].x = 5
    master.comps[0].trickle_up_change()
    assert instance.is_out_of_sync()
    # The instance itself has not changed.
    assert instance.compute_crc() == instance_crc

    master.comps[0].x = 0
    master.comps[0].trickle_up_change()
    assert not instance.is_out_of_sync()


def test_instance_encoding_omits_template_state(session):
    master = Scene(id='Mixer', comps=[Pump(id='p1')])
    session.register_package(PackageContainer(id='pkgPumps', entries=[Pump]))
    package = session.register_package(PackageContainer(id='pkgA', entries={'scenes': [master]}))
    class_ref = package.lookup_class_ref('Mixer')
    assert class_ref.template is master
    assert master.get_template_ref() is class_ref

    instance = class_ref.create_smart_object(id='Mixer', x=10)
    assert instance.to_portable() == {'smartType': 'Mixer', 'smartPkg': 'pkgA', 'id': 'Mixer', 'x': 10}
    assert master.to_portable() == {
        'smartType': 'Scene',
        'smartPkg': 'core',
        'isPseudoClassMaster': True,
        'id': 'Mixer',
        'comps': [{'smartType': 'Pump', 'smartPkg': 'pkgPumps', 'id': 'p1'}],
    }

    # Decoding an instance reconstitutes its components from the master.
    restored = Entity.from_portable(instance.to_portable())
    assert restored.pseudo_class.master is master
    assert [comp.id for comp in restored.comps] == ['p1']
    assert restored.compute_crc() == instance.compute_crc()


def test_clone_of_instance_stays_instance():
    master = Scene(id='Mixer', comps=[Pump(id='p1')])
    instance = ClassReference(master, 'pkgA').create_smart_object(id='mixer1')
    clone = instance.deep_clone(id='mixer2')
    assert clone.pseudo_class.is_instance()
    assert clone.pseudo_class.master is master
    assert clone.pseudo_class.master_crc == instance.pseudo_class.master_crc
    assert [comp.id for comp in clone.comps] == ['p1']
