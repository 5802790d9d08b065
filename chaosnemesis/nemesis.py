"""
Nemesis descriptors and the catalog of ready-to-run nemeses.

A Nemesis pairs a timing schedule with the actuator that carries it out.
Descriptors hold single-use generators, so the catalog exposes builder
functions: call one per test run.
"""
import random
from collections import namedtuple

from chaosnemesis.actions.actuator import Noop
from chaosnemesis.actions.clock import strobe_time_nemesis, bump_time_nemesis
from chaosnemesis.actions.compose import Compose
from chaosnemesis.actions.partition import (partition_random_halves,
                                            partition_majorities_ring)
from chaosnemesis.actions.process import hammer_time, kill_restart
from chaosnemesis.common import *
from chaosnemesis.control import random_targets
from chaosnemesis.generator import (no_fault, single_fault, dual_fault,
                                    back_to_back)

# 'clocks' is True iff the actuator (or a composed sub-actuator) changes node
# clocks. Drivers use it to resynchronize clocks around a run.
Nemesis = namedtuple('Nemesis', ['name', 'during', 'final', 'actuator',
                                 'clocks'])


def compose(n1: Nemesis, n2: Nemesis,
            delay=DEFAULT_CHAOS_NEMESIS_DELAY,
            duration=DEFAULT_CHAOS_NEMESIS_DURATION) -> Nemesis:
    """
    Run two nemeses under one dual-fault schedule. start1/stop1 drive n1's
    actuator and start2/stop2 drive n2's. The schedules of n1 and n2 are
    not used.
    """
    schedule = dual_fault(delay, duration)
    actuator = Compose([({'start1': START, 'stop1': STOP}, n1.actuator),
                        ({'start2': START, 'stop2': STOP}, n2.actuator)])
    return Nemesis(name="{}-{}".format(n1.name, n2.name),
                   during=schedule.during,
                   final=schedule.final,
                   actuator=actuator,
                   clocks=bool(n1.clocks or n2.clocks))


def _single(name, actuator, clocks=False,
            delay=DEFAULT_CHAOS_NEMESIS_DELAY,
            duration=DEFAULT_CHAOS_NEMESIS_DURATION):
    schedule = single_fault(delay, duration)
    return Nemesis(name=name, during=schedule.during, final=schedule.final,
                   actuator=actuator, clocks=clocks)


def _numbered(name, n):
    return "{}{}".format(name, n if n > 1 else "")


# Catalog

def none(**kwargs) -> Nemesis:
    """Empty nemesis. Never invokes its actuator."""
    schedule = no_fault()
    return Nemesis(name="blank", during=schedule.during, final=schedule.final,
                   actuator=Noop(), clocks=False)


def parts(rng: random.Random = None, **kwargs) -> Nemesis:
    """Random partitions into two halves."""
    return _single("parts", partition_random_halves(rng), **kwargs)


def startstop(n: int = 1, rng: random.Random = None, **kwargs) -> Nemesis:
    """Pause and resume the database process on n random nodes."""
    return _single(_numbered("startstop", n),
                   hammer_time(random_targets(n, rng)), **kwargs)


def startkill(n: int = 1, rng: random.Random = None, **kwargs) -> Nemesis:
    """Kill and restart the database process on n random nodes."""
    return _single(_numbered("startkill", n),
                   kill_restart(random_targets(n, rng)), **kwargs)


def majring(rng: random.Random = None, **kwargs) -> Nemesis:
    """Majorities ring partitions."""
    return _single("majring", partition_majorities_ring(rng), **kwargs)


def strobe_skews(delta=DEFAULT_CHAOS_STROBE_DELTA,
                 period=DEFAULT_CHAOS_STROBE_PERIOD,
                 duration=DEFAULT_CHAOS_STROBE_DURATION, **kwargs) -> Nemesis:
    # start takes as long as the strobe itself, so there is nothing to sleep
    schedule = back_to_back()
    return Nemesis(name="strobe-skews", during=schedule.during,
                   final=schedule.final,
                   actuator=strobe_time_nemesis(delta, period, duration),
                   clocks=True)


def skew(name: str, offset: float, rng: random.Random = None,
         **kwargs) -> Nemesis:
    """Bump the clocks of random nodes by offset seconds."""
    return _single(name, bump_time_nemesis(offset, rng), clocks=True,
                   **kwargs)


def small_skews(**kwargs) -> Nemesis:
    return skew("small-skews", 0.100, **kwargs)


def subcritical_skews(**kwargs) -> Nemesis:
    return skew("subcritical-skews", 0.200, **kwargs)


def critical_skews(**kwargs) -> Nemesis:
    return skew("critical-skews", 0.250, **kwargs)


def big_skews(**kwargs) -> Nemesis:
    return skew("big-skews", 0.5, **kwargs)


def huge_skews(**kwargs) -> Nemesis:
    return skew("huge-skews", 60, **kwargs)


CATALOG = {
    'none': none,
    'parts': parts,
    'startstop': startstop,
    'startstop2': lambda **kwargs: startstop(2, **kwargs),
    'startkill': startkill,
    'startkill2': lambda **kwargs: startkill(2, **kwargs),
    'majring': majring,
    'strobe-skews': strobe_skews,
    'small-skews': small_skews,
    'subcritical-skews': subcritical_skews,
    'critical-skews': critical_skews,
    'big-skews': big_skews,
    'huge-skews': huge_skews,
}


def get_nemesis(name: str, **kwargs) -> Nemesis:
    """
    Build the catalog nemesis registered under name.

    :param name: A key of CATALOG.
    :param kwargs: Passed to the builder (i.e. rng, delay, duration).
    :raises ValueError: for names not in the catalog.
    """
    try:
        builder = CATALOG[name]
    except KeyError:
        raise ValueError("Unknown nemesis '{}'. Expected one of: {}".format(
            name, ", ".join(sorted(CATALOG))))
    return builder(**kwargs)
