from chaosnemesis.actions.actuator import FaultActuator
from chaosnemesis.common import STOP
from chaosnemesis.control import on_nodes, start_node
from logzero import logger


class Restarting(FaultActuator):
    """
    Wraps an actuator. After the wrapped actuator has completed a 'stop',
    makes sure the database is running on every node again.

    The stop's value becomes a (wrapped value, recovery report) pair where the
    report holds one NodeResult per node: 'started', or the error message for
    nodes that could not be recovered.
    """

    def __init__(self, actuator: FaultActuator, recover=start_node):
        self.actuator = actuator
        self.recover = recover

    def setup(self, context, node=None):
        return Restarting(self.actuator.setup(context, node), self.recover)

    def invoke(self, context, op):
        result = self.actuator.invoke(context, op)
        if op.f != STOP:
            return result

        report = on_nodes(context, self.recover)
        failed = sorted(node for node, outcome in report.items()
                        if not outcome.ok)
        if failed:
            logger.error("Failed to recover nodes %s after stop", failed)
        else:
            logger.info("Recovered all nodes after stop")
        return result._replace(value=(result.value, report))

    def teardown(self, context):
        self.actuator.teardown(context)
