from chaosnemesis.actions.actuator import FaultActuator
from chaosnemesis.common import CompositionError
from logzero import logger

from typing import Dict, List, Tuple


class Compose(FaultActuator):
    """
    Routes operations to one of several actuators by action name.

    Each route is a (mapping, actuator) pair. The mapping translates the
    outer action names this actuator accepts into the action names the
    sub-actuator understands, e.g. {'start1': 'start', 'stop1': 'stop'}.
    An operation is rewritten with the inner name, handed to exactly one
    sub-actuator, and its result is returned under the outer name again.
    """

    def __init__(self, routes: List[Tuple[Dict[str, str], FaultActuator]]):
        self.routes = tuple((dict(mapping), actuator)
                            for mapping, actuator in routes)
        seen = set()
        for mapping, _ in self.routes:
            overlap = seen.intersection(mapping)
            if overlap:
                raise CompositionError("Actions {} are routed to more than one"
                                       " actuator".format(sorted(overlap)))
            seen.update(mapping)

    def route(self, f):
        for mapping, actuator in self.routes:
            if f in mapping:
                return mapping[f], actuator
        raise CompositionError("No actuator handles '{}'".format(f))

    def setup(self, context, node=None):
        return Compose([(mapping, actuator.setup(context, node))
                        for mapping, actuator in self.routes])

    def invoke(self, context, op):
        inner_f, actuator = self.route(op.f)
        logger.debug("Routing %s to %s as %s", op.f,
                     type(actuator).__name__, inner_f)
        result = actuator.invoke(context, op._replace(f=inner_f))
        return result._replace(f=op.f)

    def teardown(self, context):
        self._teardown(context, list(self.routes))

    def _teardown(self, context, routes):
        # Every sub-actuator gets torn down even if an earlier one fails
        if not routes:
            return
        try:
            routes[0][1].teardown(context)
        finally:
            self._teardown(context, routes[1:])
