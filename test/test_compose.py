import itertools
import random

import pytest

from chaosnemesis.actions.compose import Compose
from chaosnemesis.common import CompositionError, Operation, op
from chaosnemesis.generator import single_fault
from chaosnemesis.nemesis import (Nemesis, compose, parts, small_skews,
                                  startkill, strobe_skews)
from test.fakes import RecordingActuator, fake_context


def recording_nemesis(name, clocks=False):
    schedule = single_fault()
    return Nemesis(name, schedule.during, schedule.final,
                   RecordingActuator(name), clocks)


def two_slots():
    first = RecordingActuator('first')
    second = RecordingActuator('second')
    return Compose([({'start1': 'start', 'stop1': 'stop'}, first),
                    ({'start2': 'start', 'stop2': 'stop'}, second)]), first, second


def test_routing_is_exclusive_per_slot():
    context, _ = fake_context()
    actuator, first, second = two_slots()
    rng = random.Random(11)
    labels = ['start1', 'stop1', 'start2', 'stop2']
    sent = [rng.choice(labels) for _ in range(500)]

    for f in sent:
        result = actuator.invoke(context, op(f))
        assert result.f == f
        owner = 'first' if f.endswith('1') else 'second'
        assert result.value == '{}:{}'.format(owner, f[:-1])

    assert [o.f for o in first.invocations] == \
        [f[:-1] for f in sent if f.endswith('1')]
    assert [o.f for o in second.invocations] == \
        [f[:-1] for f in sent if f.endswith('2')]


def test_unknown_action_is_a_composition_error():
    context, _ = fake_context()
    actuator, first, second = two_slots()

    for f in ['start', 'stop', 'start3', 'bogus']:
        with pytest.raises(CompositionError):
            actuator.invoke(context, op(f))

    assert first.invocations == []
    assert second.invocations == []


def test_overlapping_routes_are_rejected():
    with pytest.raises(CompositionError):
        Compose([({'start1': 'start', 'stop1': 'stop'}, RecordingActuator()),
                 ({'stop1': 'stop', 'start2': 'start'}, RecordingActuator())])


def test_setup_and_teardown_reach_both_actuators():
    context, _ = fake_context()
    actuator, first, second = two_slots()

    live = actuator.setup(context)
    live.teardown(context)

    assert isinstance(live, Compose)
    assert (first.setups, second.setups) == (1, 1)
    assert (first.teardowns, second.teardowns) == (1, 1)


def test_teardown_continues_after_a_failure():
    context, _ = fake_context()
    first = RecordingActuator('first', fail_teardown=True)
    second = RecordingActuator('second')
    actuator = Compose([({'start1': 'start', 'stop1': 'stop'}, first),
                        ({'start2': 'start', 'stop2': 'stop'}, second)])

    with pytest.raises(RuntimeError):
        actuator.teardown(context)

    assert second.teardowns == 1


def test_compose_name_and_clocks():
    for clocks1, clocks2 in itertools.product([False, True], repeat=2):
        n1 = recording_nemesis('one', clocks1)
        n2 = recording_nemesis('two', clocks2)
        composed = compose(n1, n2)
        assert composed.name == 'one-two'
        assert composed.clocks == (clocks1 or clocks2)

    assert compose(parts(), small_skews()).name == 'parts-small-skews'
    assert compose(parts(), startkill(2)).clocks is False
    assert compose(startkill(), strobe_skews()).clocks is True


def test_composed_nemesis_drives_both_actuators_on_the_dual_schedule():
    context, _ = fake_context()
    n1 = recording_nemesis('one')
    n2 = recording_nemesis('two')
    composed = compose(n1, n2, delay=1, duration=2)

    ops = [step for step in itertools.islice(composed.during, 16)
           if isinstance(step, Operation)]
    live = composed.actuator.setup(context)
    for o in ops + list(composed.final):
        live.invoke(context, o)

    assert [o.f for o in n1.actuator.invocations] == \
        ['start', 'stop', 'start', 'stop', 'stop']
    assert [o.f for o in n2.actuator.invocations] == \
        ['start', 'stop', 'start', 'stop', 'stop']
