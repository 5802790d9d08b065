"""
Clock skew actuators.

Both actuators leave the clocks of every node synchronized with the reference
NTP server on setup and teardown. Neither restores the database itself after
a skew; wrap them in Restarting (see strobe_time_nemesis and bump_time_nemesis)
so the recovery sweep after each 'stop' brings crashed nodes back.
"""
import random
from functools import partial

from chaosnemesis.actions.actuator import FaultActuator, unknown_action
from chaosnemesis.actions.restarting import Restarting
from chaosnemesis.common import *
from chaosnemesis.control import (on_nodes, reset_clock, reset_clocks,
                                  bump_time, strobe_time)
from logzero import logger


class StrobeTime(FaultActuator):
    """
    In response to a 'start', strobes the clock of every node between the
    current time and delta ms ahead, flipping every period ms, for duration
    seconds. 'start' returns only once the strobe window is over. 'stop'
    does nothing to the clocks.
    """

    def __init__(self, delta=DEFAULT_CHAOS_STROBE_DELTA,
                 period=DEFAULT_CHAOS_STROBE_PERIOD,
                 duration=DEFAULT_CHAOS_STROBE_DURATION):
        self.delta = delta
        self.period = period
        self.duration = duration

    def setup(self, context, node=None):
        reset_clocks(context)
        return self

    def invoke(self, context, op):
        if op.f == START:
            logger.info("Strobing clocks by %s ms every %s ms for %s s",
                        self.delta, self.period, self.duration)
            value = on_nodes(context, partial(strobe_time, delta=self.delta,
                                              period=self.period,
                                              duration=self.duration))
        elif op.f == STOP:
            value = None
        else:
            unknown_action(self, op)
        return op._replace(value=value)

    def teardown(self, context):
        reset_clocks(context)


class BumpTime(FaultActuator):
    """
    On 'start', shifts the clock of a random subset of nodes by dt seconds.
    Each node is bumped with the given probability, so the skew is usually
    partial rather than cluster-wide. Nodes that were left alone report 0.
    On 'stop', resets every node's clock.

    :param dt: Offset in seconds. Millisecond precision.
    :param probability: Chance of bumping each node.
    :param rng: Random source deciding which nodes get bumped.
    """

    def __init__(self, dt, probability=DEFAULT_CHAOS_BUMP_PROBABILITY,
                 rng: random.Random = None):
        self.dt = dt
        self.probability = probability
        self.rng = rng or random.Random()

    def setup(self, context, node=None):
        reset_clocks(context)
        return self

    def invoke(self, context, op):
        if op.f == START:
            # Draw in node order so a seeded rng gives reproducible targets
            bumped = {node: self.rng.random() < self.probability
                      for node in context.nodes}
            logger.info("Bumping clocks by %s s on %s", self.dt,
                        sorted(node for node, bump in bumped.items() if bump))
            value = on_nodes(context, partial(_maybe_bump, dt=self.dt,
                                              bumped=bumped))
        elif op.f == STOP:
            value = on_nodes(context, reset_clock)
        else:
            unknown_action(self, op)
        return op._replace(value=value)

    def teardown(self, context):
        reset_clocks(context)


def _maybe_bump(context, node, dt, bumped):
    if bumped[node]:
        return bump_time(context, node, dt)
    return 0


def strobe_time_nemesis(delta, period, duration) -> FaultActuator:
    return Restarting(StrobeTime(delta, period, duration))


def bump_time_nemesis(dt, rng: random.Random = None) -> FaultActuator:
    return Restarting(BumpTime(dt, rng=rng))
