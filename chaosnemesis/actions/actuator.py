import abc

from chaosnemesis.common import Operation, UnknownActionError


class FaultActuator(object, metaclass=abc.ABCMeta):
    """
    The capability that mutates cluster state in response to operations.

    setup returns the live actuator to use for the rest of the run; most
    actuators return themselves.
    """

    def setup(self, context, node=None) -> 'FaultActuator':
        return self

    @abc.abstractmethod
    def invoke(self, context, op: Operation) -> Operation:
        raise NotImplementedError('users must define invoke to use this base class')

    def teardown(self, context) -> None:
        pass


class Noop(FaultActuator):
    """Does nothing, and returns operations untouched."""

    def invoke(self, context, op):
        return op


def unknown_action(actuator, op):
    raise UnknownActionError("{} does not know how to '{}'".format(
        type(actuator).__name__, op.f))
