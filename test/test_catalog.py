import itertools
import random

import pytest

from chaosnemesis.actions.actuator import Noop
from chaosnemesis.actions.clock import BumpTime, StrobeTime
from chaosnemesis.actions.partition import Partitioner
from chaosnemesis.actions.process import NodeStartStopper
from chaosnemesis.actions.restarting import Restarting
from chaosnemesis.common import Operation, Sleep, op
from chaosnemesis.nemesis import (CATALOG, Nemesis, get_nemesis, majring,
                                  none, parts, skew, startkill, startstop,
                                  strobe_skews)
from chaosnemesis.runner import NemesisRunner
from test.fakes import FakeClock, RecordingActuator, fake_context


def test_none_emits_nothing():
    nemesis = none()
    assert nemesis.name == 'blank'
    assert isinstance(nemesis.actuator, Noop)
    assert nemesis.clocks is False
    assert list(nemesis.during) == []
    assert list(nemesis.final) == []


def test_none_never_invokes_its_actuator():
    context, cluster = fake_context()
    recorder = RecordingActuator()
    nemesis = none()._replace(actuator=recorder)
    clock = FakeClock()

    history = NemesisRunner(nemesis, context, 60, clock=clock,
                            sleep=clock.sleep).run()

    assert history == []
    assert recorder.invocations == []
    # Only the read-only liveness check touches the nodes
    assert all(action.startswith('pgrep') for _, action in cluster.commands)


def test_startstop_pauses_exactly_n_distinct_nodes():
    context, cluster = fake_context()
    nemesis = startstop(2, rng=random.Random(5))
    actuator = nemesis.actuator.setup(context)

    for _ in range(50):
        cluster.commands = []
        result = actuator.invoke(context, op('start'))
        paused = cluster.hosts_for('killall -s STOP')
        assert len(paused) == 2
        assert len(set(paused)) == 2
        assert set(result.value) == set(paused)
        assert sum(cluster.paused.values()) == 2

        actuator.invoke(context, op('stop'))
        assert sorted(cluster.hosts_for('killall -s CONT')) == sorted(paused)
        assert not any(cluster.paused.values())


def test_names():
    assert startstop().name == 'startstop'
    assert startstop(2).name == 'startstop2'
    assert startkill().name == 'startkill'
    assert startkill(3).name == 'startkill3'
    assert parts().name == 'parts'
    assert majring().name == 'majring'
    assert strobe_skews().name == 'strobe-skews'


def test_single_fault_entries():
    for nemesis in [parts(), startstop(), startkill(), majring()]:
        assert nemesis.clocks is False
        assert list(itertools.islice(nemesis.during, 4)) == \
            [Sleep(5), op('start'), Sleep(5), op('stop')]
        assert list(nemesis.final) == [op('stop')]
    assert isinstance(parts().actuator, Partitioner)
    assert isinstance(majring().actuator, Partitioner)
    assert isinstance(startkill().actuator, NodeStartStopper)


def test_schedule_can_be_tuned():
    nemesis = parts(delay=1, duration=3)
    assert list(itertools.islice(nemesis.during, 4)) == \
        [Sleep(1), op('start'), Sleep(3), op('stop')]


def test_strobe_skews():
    nemesis = strobe_skews()
    assert nemesis.clocks is True
    assert isinstance(nemesis.actuator, Restarting)
    strobe = nemesis.actuator.actuator
    assert isinstance(strobe, StrobeTime)
    assert (strobe.delta, strobe.period, strobe.duration) == (200, 10, 10)
    steps = list(itertools.islice(nemesis.during, 6))
    assert not any(isinstance(step, Sleep) for step in steps)
    assert [step.f for step in steps] == ['start', 'stop'] * 3


@pytest.mark.parametrize("key,offset", [
    ('small-skews', 0.1),
    ('subcritical-skews', 0.2),
    ('critical-skews', 0.25),
    ('big-skews', 0.5),
    ('huge-skews', 60),
])
def test_skews(key, offset):
    nemesis = get_nemesis(key)
    assert nemesis.name == key
    assert nemesis.clocks is True
    assert isinstance(nemesis.actuator, Restarting)
    assert isinstance(nemesis.actuator.actuator, BumpTime)
    assert nemesis.actuator.actuator.dt == offset


def test_skew_builder():
    nemesis = skew('custom-skews', 2.5)
    assert nemesis.name == 'custom-skews'
    assert nemesis.actuator.actuator.dt == 2.5


def test_every_catalog_entry_builds_a_fresh_nemesis():
    for key in CATALOG:
        first = get_nemesis(key)
        second = get_nemesis(key)
        assert isinstance(first, Nemesis)
        assert first.during is not second.during
        assert first.actuator is not second.actuator


def test_unknown_catalog_entry():
    with pytest.raises(ValueError):
        get_nemesis('meteor-strike')
