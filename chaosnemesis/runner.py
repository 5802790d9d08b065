"""
Drive a nemesis against a cluster.

The runner is the single thread that pulls steps from a nemesis's
generators. Sleeps are honoured as real elapsed time and every operation is
handed to the actuator synchronously, so no two operations ever overlap.
"""
import json
import time
from os.path import join

from chaosnemesis.common import *
from chaosnemesis.control import TestContext, reset_clocks
from chaosnemesis.generator import Generator
from chaosnemesis.nemesis import Nemesis
from chaosnemesis.probes.clock import clocks_synchronized
from chaosnemesis.probes.node import all_nodes_up
from logzero import logger

from typing import Callable, List


class NemesisRunner(object):
    """
    Run one nemesis for time_limit seconds, then stop every fault it started.

    :param nemesis: The nemesis to run. Built fresh for this run.
    :param context: The test context (node set and executor).
    :param time_limit: Seconds during which the during-phase generator is
        pulled. The final phase always runs to completion afterwards.
    :param clock: Monotonic clock in seconds. (Default: time.monotonic)
    :param sleep: Blocks for the given number of seconds. (Default: time.sleep)
    :param quiescence_wait: Seconds to let the cluster settle after the final
        phase. (Default: chaosnemesis.common.DEFAULT_CHAOS_NEMESIS_QUIESCENCE_WAIT)
    """

    def __init__(self, nemesis: Nemesis, context: TestContext, time_limit,
                 clock: Callable = time.monotonic, sleep: Callable = time.sleep,
                 quiescence_wait=DEFAULT_CHAOS_NEMESIS_QUIESCENCE_WAIT):
        self.nemesis = nemesis
        self.context = context
        self.time_limit = time_limit
        self.clock = clock
        self.sleep = sleep
        self.quiescence_wait = quiescence_wait
        self.history = []
        # Cluster checks made once the run is over. None until then;
        # clocks_synchronized stays None for nemeses that leave clocks alone.
        self.clocks_synchronized = None
        self.nodes_up = None

    def run(self) -> List[Operation]:
        nemesis = self.nemesis
        logger.info("Running nemesis %s on %s for %s s", nemesis.name,
                    list(self.context.nodes), self.time_limit)
        if nemesis.clocks:
            reset_clocks(self.context)
        actuator = nemesis.actuator.setup(self.context)
        try:
            self._drain(actuator, nemesis.during,
                        self.clock() + self.time_limit)
            logger.info("Stopping nemesis %s", nemesis.name)
            self._drain(actuator, nemesis.final)
            if self.quiescence_wait:
                self.sleep(self.quiescence_wait)
        finally:
            try:
                actuator.teardown(self.context)
            finally:
                if nemesis.clocks:
                    reset_clocks(self.context)
                    self.clocks_synchronized = clocks_synchronized(
                        self.context)
                    if not self.clocks_synchronized:
                        logger.warning("Clocks still skewed after nemesis %s",
                                       nemesis.name)
        self.nodes_up = all_nodes_up(self.context)
        if not self.nodes_up:
            logger.warning("Database is not running on every node after"
                           " nemesis %s", nemesis.name)
        return self.history

    def _drain(self, actuator, generator: Generator, deadline=None):
        while True:
            if deadline is not None and self.clock() >= deadline:
                return
            step = generator.next_step()
            if step is None:
                return
            if isinstance(step, Sleep):
                seconds = step.seconds
                if deadline is not None:
                    seconds = min(seconds, deadline - self.clock())
                if seconds > 0:
                    self.sleep(seconds)
                continue
            self._invoke(actuator, step)

    def _invoke(self, actuator, operation):
        logger.info("nemesis %s :%s", self.nemesis.name, operation.f)
        self.history.append(operation)
        result = actuator.invoke(self.context, operation)
        logger.debug("nemesis %s :%s -> %s", self.nemesis.name, result.f,
                     result.value)
        self.history.append(result)
        return result


def run_nemesis(nemesis: Nemesis, context: TestContext, time_limit,
                **kwargs) -> List[Operation]:
    return NemesisRunner(nemesis, context, time_limit, **kwargs).run()


def save_history(history: List[Operation], path: str = None,
                 runner_process: str = None) -> str:
    """
    Write a nemesis history as JSON lines, one operation per line.

    :param history: Operations as returned by NemesisRunner.run.
    :param path: Output file. (Default: 'nemesis-history' in the chaos temp
        dir, see chaosnemesis.common.get_chaos_temp_dir)
    :param runner_process: Passed on to get_chaos_temp_dir when path is not
        given.
    :return: The path written to.
    """
    if path is None:
        path = join(get_chaos_temp_dir(runner_process), "nemesis-history")
    with open(path, "w") as f:
        for operation in history:
            f.write(json.dumps(operation_to_dict(operation)))
            f.write("\n")
    logger.debug("Wrote %d operations to %s", len(history), path)
    return path
