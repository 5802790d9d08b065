from chaosnemesis.actions.actuator import FaultActuator, unknown_action
from chaosnemesis.common import START, STOP
from chaosnemesis.control import (on_nodes, kill_node, start_node, pause_node,
                                  resume_node)
from logzero import logger

from typing import Callable


class NodeStartStopper(FaultActuator):
    """
    On 'start', picks target nodes with targeter and applies stop_fn to each
    of them concurrently. On 'stop', applies start_fn to the nodes stopped by
    the last 'start'. Teardown brings back nodes a 'stop' never reached.

    :param targeter: Callable taking the node set and returning the nodes to
        act on.
    :param stop_fn: Per-node callable (context, node) that takes a node down.
    :param start_fn: Per-node callable (context, node) that brings it back.
    """

    def __init__(self, targeter: Callable, stop_fn: Callable,
                 start_fn: Callable):
        self.targeter = targeter
        self.stop_fn = stop_fn
        self.start_fn = start_fn
        self.targets = None

    def invoke(self, context, op):
        if op.f == START:
            if self.targets is not None:
                return op._replace(value='already-started')
            self.targets = list(self.targeter(context.nodes))
            logger.info("Stopping %s", self.targets)
            value = on_nodes(context, self.stop_fn, self.targets)
        elif op.f == STOP:
            if self.targets is None:
                return op._replace(value='not-started')
            logger.info("Starting %s", self.targets)
            value = on_nodes(context, self.start_fn, self.targets)
            self.targets = None
        else:
            unknown_action(self, op)
        return op._replace(value=value)

    def teardown(self, context):
        # A run aborted mid-fault never reaches its final 'stop'
        if self.targets is None:
            return
        logger.info("Restoring %s on teardown", self.targets)
        results = on_nodes(context, self.start_fn, self.targets)
        self.targets = None
        failed = {node: result.value for node, result in results.items()
                  if not result.ok}
        if failed:
            logger.error("Failed to restore nodes on teardown: %s", failed)


def hammer_time(targeter: Callable) -> NodeStartStopper:
    """Pause the database process with SIGSTOP, resume it with SIGCONT."""
    return NodeStartStopper(targeter, pause_node, resume_node)


def kill_restart(targeter: Callable) -> NodeStartStopper:
    """Kill the database process with SIGKILL, start the service again."""
    return NodeStartStopper(targeter, kill_node, start_node)
