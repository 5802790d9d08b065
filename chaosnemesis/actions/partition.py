"""
Network partition actuators.

A partition is described by a grudge: a dict mapping each node to the set of
nodes whose inbound traffic it drops. Grudges are installed with iptables on
every node and healed by flushing the INPUT rules.
"""
import math
import random

from chaosnemesis.actions.actuator import FaultActuator, unknown_action
from chaosnemesis.common import NemesisError, START, STOP
from chaosnemesis.control import on_nodes, drop_traffic, heal_network
from logzero import logger

from typing import Callable, Dict, List, Set


def complete_grudge(components: List[List[str]]) -> Dict[str, Set[str]]:
    """Every node drops traffic from every node outside its own component."""
    everyone = set(node for component in components for node in component)
    grudge = {}
    for component in components:
        for node in component:
            grudge[node] = everyone - set(component)
    return grudge


def random_halves(nodes, rng: random.Random) -> Dict[str, Set[str]]:
    """Shuffle the nodes and cut them into two halves, larger half first."""
    shuffled = rng.sample(list(nodes), len(nodes))
    middle = int(math.ceil(len(shuffled) / 2))
    return complete_grudge([shuffled[:middle], shuffled[middle:]])


def majorities_ring(nodes, rng: random.Random) -> Dict[str, Set[str]]:
    """
    Arrange the nodes in a random ring. Every node sees a majority made of
    itself and its closest neighbours on the ring, and drops everyone else.
    """
    ring = rng.sample(list(nodes), len(nodes))
    n = len(ring)
    majority = n // 2 + 1
    before = (majority - 1) // 2
    after = majority - 1 - before
    everyone = set(ring)
    grudge = {}
    for i, node in enumerate(ring):
        visible = set(ring[(i + k) % n] for k in range(-before, after + 1))
        grudge[node] = everyone - visible
    return grudge


class Partitioner(FaultActuator):
    """
    On 'start', cuts the network according to a grudge computed by grudge_fn
    over the node set. On 'stop', heals the network on every node.
    """

    def __init__(self, grudge_fn: Callable, rng: random.Random = None):
        self.grudge_fn = grudge_fn
        self.rng = rng or random.Random()

    def setup(self, context, node=None):
        heal(context)
        return self

    def invoke(self, context, op):
        if op.f == START:
            grudge = self.grudge_fn(context.nodes, self.rng)
            logger.info("Cutting off %s",
                        {node: sorted(peers) for node, peers in grudge.items()})
            results = on_nodes(context, lambda ctx, node:
                               drop_traffic(ctx, node, grudge[node]))
            value = {'grudge': {node: sorted(peers)
                                for node, peers in grudge.items()},
                     'nodes': results}
        elif op.f == STOP:
            logger.info("Healing network")
            value = on_nodes(context, heal_network)
        else:
            unknown_action(self, op)
        return op._replace(value=value)

    def teardown(self, context):
        heal(context)


def heal(context):
    """Heal the network on every node. Raises if any node stays cut off."""
    results = on_nodes(context, heal_network)
    failed = {node: result.value for node, result in results.items()
              if not result.ok}
    if failed:
        raise NemesisError("Failed to heal network on nodes: {}".format(failed))
    return results


def partition_random_halves(rng: random.Random = None) -> Partitioner:
    return Partitioner(random_halves, rng)


def partition_majorities_ring(rng: random.Random = None) -> Partitioner:
    return Partitioner(majorities_ring, rng)
