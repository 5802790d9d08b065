import json
import random

import pytest

from chaosnemesis.common import Phase, UnknownActionError
from chaosnemesis.generator import single_fault
from chaosnemesis.nemesis import (Nemesis, compose, small_skews, startkill,
                                  startstop)
from chaosnemesis.runner import NemesisRunner, run_nemesis, save_history
from test.fakes import FakeClock, RecordingActuator, fake_context


def recording_nemesis(delay=5, duration=5, actuator=None, clocks=False):
    schedule = single_fault(delay, duration)
    return Nemesis('recorder', schedule.during, schedule.final,
                   actuator or RecordingActuator(), clocks)


def test_runs_cycles_until_the_time_limit_then_stops():
    context, _ = fake_context()
    nemesis = recording_nemesis()
    clock = FakeClock()

    history = NemesisRunner(nemesis, context, 25, clock=clock,
                            sleep=clock.sleep).run()

    recorder = nemesis.actuator
    assert [o.f for o in recorder.invocations] == \
        ['start', 'stop', 'start', 'stop', 'stop']
    assert clock.sleeps == [5, 5, 5, 5, 5, 3]
    assert recorder.setups == 1
    assert recorder.teardowns == 1
    # Every invocation is recorded together with its completion
    assert len(history) == 10
    assert history[1].value == 'recorder:start'
    assert all(o.type == Phase.INFO for o in history)


def test_sleeps_are_capped_at_the_time_limit():
    context, _ = fake_context()
    nemesis = recording_nemesis()
    clock = FakeClock()

    run_nemesis(nemesis, context, 7, clock=clock, sleep=clock.sleep,
                quiescence_wait=0)

    assert clock.sleeps == [5, 2]
    assert [o.f for o in nemesis.actuator.invocations] == ['start', 'stop']


class Exploding(RecordingActuator):

    def invoke(self, context, op):
        raise UnknownActionError("boom")


def test_teardown_runs_when_an_invocation_fails():
    context, _ = fake_context()
    actuator = Exploding()
    nemesis = recording_nemesis(actuator=actuator)
    clock = FakeClock()

    with pytest.raises(UnknownActionError):
        NemesisRunner(nemesis, context, 60, clock=clock,
                      sleep=clock.sleep).run()

    assert actuator.teardowns == 1


def test_clock_nemesis_leaves_clocks_and_processes_restored():
    context, cluster = fake_context()
    nemesis = small_skews(rng=random.Random(8))
    clock = FakeClock()

    history = NemesisRunner(nemesis, context, 40, clock=clock,
                            sleep=clock.sleep).run()

    assert set(cluster.offsets.values()) == {0}
    assert all(cluster.running.values())
    stops = [o for o in history[1::2] if o.f == 'stop']
    assert stops
    for stop in stops:
        _, report = stop.value
        assert set(report) == set(context.nodes)


def test_process_nemesis_end_to_end():
    context, cluster = fake_context()
    nemesis = startkill(2, rng=random.Random(6))
    clock = FakeClock()

    run_nemesis(nemesis, context, 33, clock=clock, sleep=clock.sleep)

    assert all(cluster.running.values())
    # Three full cycles fit in 33 seconds; the final stop finds nothing to undo
    assert len(cluster.hosts_for('killall -9')) == 6
    assert len(cluster.hosts_for('systemctl start')) == 6


def test_save_history(tmpdir):
    context, _ = fake_context()
    clock = FakeClock()
    history = run_nemesis(startkill(rng=random.Random(1)), context, 12,
                          clock=clock, sleep=clock.sleep)
    path = str(tmpdir.join('history'))

    assert save_history(history, path) == path

    with open(path) as f:
        lines = [json.loads(line) for line in f]
    assert len(lines) == len(history)
    assert lines[0] == {'type': 'info', 'f': 'start', 'value': None}
    killed = lines[1]['value']
    assert len(killed) == 1
    assert list(killed.values())[0] == {'ok': True, 'value': 'killed'}


def test_aborted_run_restores_paused_nodes():
    context, cluster = fake_context()
    exploding = Exploding()
    nemesis = compose(startstop(2, rng=random.Random(3)),
                      recording_nemesis(actuator=exploding))
    clock = FakeClock()

    with pytest.raises(UnknownActionError):
        NemesisRunner(nemesis, context, 60, clock=clock,
                      sleep=clock.sleep).run()

    # start1 paused two nodes before start2 blew up
    assert len(cluster.hosts_for('killall -s STOP')) == 2
    assert sorted(cluster.hosts_for('killall -s CONT')) == \
        sorted(cluster.hosts_for('killall -s STOP'))
    assert not any(cluster.paused.values())
    assert exploding.teardowns == 1


def test_cluster_checks_after_the_run():
    context, cluster = fake_context()
    clock = FakeClock()
    runner = NemesisRunner(small_skews(rng=random.Random(2)), context, 12,
                           clock=clock, sleep=clock.sleep)
    assert runner.clocks_synchronized is None
    assert runner.nodes_up is None

    runner.run()

    assert runner.clocks_synchronized is True
    assert runner.nodes_up is True


def test_nodes_left_down_are_reported():
    context, cluster = fake_context()
    cluster.running['n3'] = False
    clock = FakeClock()
    runner = NemesisRunner(recording_nemesis(), context, 12, clock=clock,
                           sleep=clock.sleep)

    runner.run()

    assert runner.nodes_up is False
    # The recorder leaves clocks alone, so they are not checked
    assert runner.clocks_synchronized is None
