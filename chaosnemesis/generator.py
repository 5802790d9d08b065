"""
Timing generators for nemeses.

A generator is an explicit iterator over steps. A step is either a Sleep
(a delay the driver must let elapse before pulling the next step) or an
Operation to hand to the nemesis's actuator. next_step() returns None once a
generator is exhausted. Generators are single use: build a new one to start
over.
"""
import abc
import itertools
from collections import namedtuple

from chaosnemesis.common import (op, Sleep, START, STOP,
                                 DEFAULT_CHAOS_NEMESIS_DELAY,
                                 DEFAULT_CHAOS_NEMESIS_DURATION)

# The during-phase generator and the final-phase generator of a nemesis
Schedule = namedtuple('Schedule', ['during', 'final'])


class Generator(object, metaclass=abc.ABCMeta):

    @abc.abstractmethod
    def next_step(self):
        raise NotImplementedError('users must define next_step to use this base class')

    def __iter__(self):
        return self

    def __next__(self):
        step = self.next_step()
        if step is None:
            raise StopIteration
        return step


class Void(Generator):
    """Emits nothing."""

    def next_step(self):
        return None


class Seq(Generator):
    """Emits a finite sequence of steps once."""

    def __init__(self, steps):
        self._steps = iter(tuple(steps))

    def next_step(self):
        return next(self._steps, None)


class Cycle(Generator):
    """Repeats a sequence of steps forever."""

    def __init__(self, steps):
        steps = tuple(steps)
        if not steps:
            raise ValueError("Cannot cycle over an empty sequence of steps")
        self._steps = itertools.cycle(steps)

    def next_step(self):
        return next(self._steps)


def no_fault() -> Schedule:
    return Schedule(Void(), Void())


def single_fault(delay=DEFAULT_CHAOS_NEMESIS_DELAY,
                 duration=DEFAULT_CHAOS_NEMESIS_DURATION) -> Schedule:
    """
    Wait delay seconds, start the fault, let it run for duration seconds,
    stop it, and repeat. The final phase stops the fault once more in case a
    start was left active.
    """
    return Schedule(Cycle([Sleep(delay), op(START),
                           Sleep(duration), op(STOP)]),
                    Seq([op(STOP)]))


def dual_fault(delay=DEFAULT_CHAOS_NEMESIS_DELAY,
               duration=DEFAULT_CHAOS_NEMESIS_DURATION) -> Schedule:
    """
    Interleave two faults so that they overlap for half of their duration.

    Successive repetitions swap which fault starts first, so both overlap
    orders get exercised. The final phase stops both faults unconditionally.
    """
    half = duration / 2
    return Schedule(Cycle([Sleep(delay), op('start1'),
                           Sleep(half), op('start2'),
                           Sleep(half), op('stop1'),
                           Sleep(half), op('stop2'),
                           Sleep(delay), op('start2'),
                           Sleep(half), op('start1'),
                           Sleep(half), op('stop2'),
                           Sleep(half), op('stop1')]),
                    Seq([op('stop1'), op('stop2')]))


def back_to_back() -> Schedule:
    """
    Alternate start and stop without sleeping. For actuators whose start
    blocks for as long as the fault lasts.
    """
    return Schedule(Cycle([op(START), op(STOP)]),
                    Seq([op(STOP)]))
