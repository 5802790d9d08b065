"""
Node-level primitives used by the fault actuators.

Every primitive takes the TestContext and a node alias, runs one shell
command on that node through the context's executor and either returns a
value or raises CommandError. Primitives are meant to be fanned out with
on_nodes, which turns a raised error into a per-node failure.
"""
import random
from os.path import expanduser

from chaosnemesis.common import *
from chaosnemesis.execute.execute import FabricExecutor, ParallelExecutor
from logzero import logger

from typing import Callable, Dict, Iterable, List


class CommandError(NemesisError):
    """A command exited with a non-zero return code on a node."""

    def __init__(self, node, command, result):
        self.node = node
        self.command = command
        self.result = result
        detail = (result.stderr or result.stdout or "").strip()
        super().__init__("'{}' failed on {} with return code {}: {}".format(
            command, node, result.return_code, detail))


class TestContext(object):
    """
    Everything an actuator needs to reach the cluster under test.

    :param nodes: The node aliases/hostnames under test. Required.
    :type nodes: Iterable[str]
    :param executor: A RemoteExecutor. Defaults to a FabricExecutor built
        from ssh_config_file.
    :param ssh_config_file: The relative or absolute path to the SSH config
        file.
        Optional. (Default: chaosnemesis.common.DEFAULT_CHAOS_SSH_CONFIG_FILE)
    :param service: systemd unit that runs the database.
    :param process: Process name of the database (for kill/pause/resume).
    :param ntp_server: Reference clock used to resynchronize node clocks.
    :param bumptime: Path of the clock bump utility on the nodes.
    :param strobe_time: Path of the clock strobe utility on the nodes.
    :param command_timeout: Seconds a single node command may run.
    """
    __test__ = False

    def __init__(self, nodes: Iterable[str], executor=None,
                 ssh_config_file: str = DEFAULT_CHAOS_SSH_CONFIG_FILE,
                 service: str = DEFAULT_CHAOS_SERVICE,
                 process: str = DEFAULT_CHAOS_SERVICE_PROCESS,
                 ntp_server: str = DEFAULT_CHAOS_NTP_SERVER,
                 bumptime: str = DEFAULT_CHAOS_BUMPTIME_COMMAND,
                 strobe_time: str = DEFAULT_CHAOS_STROBE_TIME_COMMAND,
                 command_timeout: int = DEFAULT_CHAOS_COMMAND_TIMEOUT,
                 parallel: ParallelExecutor = None):
        self.nodes = tuple(nodes)
        if len(set(self.nodes)) != len(self.nodes):
            raise ValueError("Duplicate nodes in node set: {}".format(
                list(self.nodes)))
        if executor is None:
            executor = FabricExecutor(ssh_config_file=expanduser(ssh_config_file))
        self.executor = executor
        self.service = service
        self.process = process
        self.ntp_server = ntp_server
        self.bumptime = bumptime
        self.strobe_time = strobe_time
        self.command_timeout = command_timeout
        self.parallel = parallel or ParallelExecutor()


def on_nodes(context: TestContext, fn: Callable,
             nodes: Iterable[str] = None) -> Dict[str, NodeResult]:
    """
    Run fn(context, node) concurrently on every node and wait for all of them.

    :param context: The test context.
    :param fn: Per-node callable taking (context, node).
    :param nodes: Subset of nodes to act on. (Default: context.nodes)
    :return: Dict[str, NodeResult] with exactly one entry per node.
    """
    if nodes is None:
        nodes = context.nodes
    return context.parallel.map(lambda node: fn(context, node), list(nodes))


def exec_on(context: TestContext, node: str, command: str,
            timeout: int = None) -> str:
    """
    Run a command as root on a node and return its stripped stdout.

    :raises CommandError: when the command exits non-zero.
    """
    if timeout is None:
        timeout = context.command_timeout
    logger.debug("%s: %s", node, command)
    result = context.executor.execute(node, command, as_sudo=True,
                                      timeout=timeout)
    if result.return_code != 0:
        raise CommandError(node, command, result)
    return result.stdout.strip()


def random_targets(count: int, rng: random.Random = None) -> Callable:
    """
    Return a targeter that picks count distinct nodes at random.

    If the caller asks for more nodes than exist, every node is returned in
    random order.
    """
    rng = rng or random.Random()

    def targeter(nodes):
        nodes = list(nodes)
        return rng.sample(nodes, min(int(count), len(nodes)))
    return targeter


# Process control

def start_node(context: TestContext, node: str) -> str:
    exec_on(context, node, "systemctl start {}".format(context.service))
    return 'started'


def kill_node(context: TestContext, node: str) -> str:
    # A node whose process is already gone counts as killed
    exec_on(context, node, "killall -9 -w {} || true".format(context.process))
    return 'killed'


def pause_node(context: TestContext, node: str) -> str:
    exec_on(context, node, "killall -s STOP {}".format(context.process))
    return 'paused'


def resume_node(context: TestContext, node: str) -> str:
    exec_on(context, node, "killall -s CONT {}".format(context.process))
    return 'resumed'


# Clocks

def reset_clock(context: TestContext, node: str) -> str:
    """Step a node's clock back to the reference NTP server."""
    return exec_on(context, node, "ntpdate -b {}".format(context.ntp_server))


def reset_clocks(context: TestContext) -> Dict[str, NodeResult]:
    """
    Reset every node's clock to the synchronized baseline.

    :raises ClockResetError: if any node could not be reset.
    """
    logger.info("Resetting clocks on %s", list(context.nodes))
    results = on_nodes(context, reset_clock)
    failures = {node: result.value for node, result in results.items()
                if not result.ok}
    if failures:
        raise ClockResetError(failures)
    return results


def bump_time(context: TestContext, node: str, dt: float) -> float:
    """Shift a node's clock by dt seconds (millisecond precision)."""
    exec_on(context, node, "{} {}".format(context.bumptime,
                                          int(round(dt * 1000))))
    return dt


def strobe_time(context: TestContext, node: str, delta: int, period: int,
                duration: int) -> str:
    """
    Toggle a node's clock between now and delta ms ahead every period ms for
    duration seconds. Blocks until the strobe window is over.
    """
    command = "{} {} {} {}".format(context.strobe_time, delta, period,
                                   duration)
    return exec_on(context, node, command,
                   timeout=duration + context.command_timeout)


# Network

def drop_traffic(context: TestContext, node: str, sources: Iterable[str]) -> List[str]:
    """Drop all inbound traffic on node coming from each of sources."""
    sources = sorted(sources)
    if not sources:
        return sources
    command = " && ".join("iptables -A INPUT -s {} -j DROP -w".format(source)
                          for source in sources)
    exec_on(context, node, command)
    return sources


def heal_network(context: TestContext, node: str) -> str:
    exec_on(context, node, "iptables -F -w && iptables -X -w")
    return 'healed'
