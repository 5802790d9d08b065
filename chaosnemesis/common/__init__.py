import shutil
import tempfile
from collections import namedtuple
from enum import Enum
from logzero import logger
from os import getpid, makedirs
from psutil import Process, AccessDenied, NoSuchProcess


class Phase(Enum):
    """
    All possible operation types recorded in a test history.

    Nemesis operations are always emitted and completed as INFO. INVOKE, OK
    and FAIL are kept so histories can be merged with client operations.
    """
    INVOKE = 'invoke'
    INFO = 'info'
    OK = 'ok'
    FAIL = 'fail'


# The operation record exchanged with the test driver. 'type' is a Phase,
# 'f' the action name and 'value' whatever the actuator attached to it.
Operation = namedtuple('Operation', ['type', 'f', 'value'])

# A scheduling delay between two operations, in seconds.
Sleep = namedtuple('Sleep', ['seconds'])


class NodeResult(namedtuple('NodeResult', ['ok', 'value'])):
    """
    Outcome of a per-node action. 'value' is the action's return value when
    ok is True, otherwise an error message.
    """
    __slots__ = ()

    @classmethod
    def success(cls, value=None):
        return cls(True, value)

    @classmethod
    def failure(cls, message):
        return cls(False, str(message))


START = 'start'
STOP = 'stop'


def op(f, value=None):
    """
    Build a nemesis operation for action f.

    :param f: The action name (i.e. 'start', 'stop1').
    :type f: str
    :param value: Optional payload.
    :return: Operation
    """
    return Operation(Phase.INFO, f, value)


def operation_to_dict(operation):
    """
    Render an Operation as the wire shape {type, f, value} with JSON-safe
    values. NodeResults become {'ok': bool, 'value': ...}.
    """
    return {
        'type': operation.type.value,
        'f': operation.f,
        'value': _json_safe(operation.value),
    }


def _json_safe(value):
    if isinstance(value, NodeResult):
        return {'ok': value.ok, 'value': _json_safe(value.value)}
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_json_safe(v) for v in value)
    if isinstance(value, Enum):
        return value.value
    return value


class NemesisError(Exception):
    """Base class for structural failures of the fault machinery."""


class CompositionError(NemesisError):
    """An operation could not be routed to exactly one composed actuator."""


class UnknownActionError(NemesisError):
    """A primitive actuator was asked to perform an action it does not know."""


class ClockResetError(NemesisError):
    """Resetting clocks across the cluster failed on one or more nodes."""

    def __init__(self, failures):
        self.failures = failures
        super().__init__("Failed to reset clocks on nodes: {}".format(
            ", ".join("{} ({})".format(node, message)
                      for node, message in sorted(failures.items()))))


def find_ancestor_pid(process_name: str) -> int:
    """
    Return the pid of the nearest process named process_name, starting with
    the current process and walking up the process tree, or None if there is
    no such process.
    """
    myp = Process()
    while myp is not None:
        try:
            if myp.name() == process_name:
                logger.debug("Found '%s' process %s", process_name, myp.pid)
                return myp.pid
            myp = myp.parent()
        except (NoSuchProcess, AccessDenied) as e:
            logger.exception(e)
            return None
    return None


def get_chaos_temp_dir(runner_process: str = None) -> str:
    """
    Create a temporary directory unique to each chaos run.

    The temporary directory will take the form <tempdir>/chaosnemesis.<pid>
    The <pid> will be the pid of the nearest ancestor process named
    runner_process iff it is given and exists, so that every run started by
    the same driver process (i.e. a shell script looping over the catalog)
    shares a directory. Otherwise, the current process's pid.

    :param runner_process: Name of the process owning the directory.
        Optional. (Default: None)
    :type runner_process: str
    :return: str
    """
    chaos_pid = None
    if runner_process:
        chaos_pid = find_ancestor_pid(runner_process)
        if chaos_pid is None:
            logger.debug("Did not find %s pid before reaching the top of the"
                         " process tree. Defaulting to %s", runner_process,
                         getpid())
    if chaos_pid is None:
        chaos_pid = getpid()

    tempdir_path = "{}/chaosnemesis.{}".format(tempfile.gettempdir(), chaos_pid)
    makedirs(tempdir_path, exist_ok=True)
    logger.debug("tempdir: %s", tempdir_path)
    return tempdir_path


def remove_chaos_temp_dir(cleanup: bool = True,
                          runner_process: str = None) -> bool:
    """
    Remove the chaos temp directory created by get_chaos_temp_dir

    :param cleanup: Perform the cleanup task?
    :type cleanup: bool
        Optional. (Default: True)
    :param runner_process: See get_chaos_temp_dir.
        Optional. (Default: None)
    :type runner_process: str
    :return: bool
    """
    temp_dir = get_chaos_temp_dir(runner_process)
    if not cleanup:
        logger.info("Skip removal of %s.", temp_dir)
        return True
    logger.debug("Recursively deleting %s", temp_dir)
    try:
        shutil.rmtree(temp_dir)
    except OSError as e:
        logger.error("Failed to recursively delete the contents of %s",
                     temp_dir)
        logger.exception(e)
        return False
    return True


# Chaos defaults
# Please keep defaults in lexically acending order by name
DEFAULT_CHAOS_BUMP_PROBABILITY = 0.5
DEFAULT_CHAOS_BUMPTIME_COMMAND = "/opt/jepsen/bumptime"
DEFAULT_CHAOS_CLOCK_TOLERANCE = 0.1  # s
DEFAULT_CHAOS_COMMAND_TIMEOUT = 30
DEFAULT_CHAOS_CONNECT_TIMEOUT = 60
# Seconds between the end of one fault and the start of the next
DEFAULT_CHAOS_NEMESIS_DELAY = 5
# Seconds a fault stays active
DEFAULT_CHAOS_NEMESIS_DURATION = 5
# Seconds to let nemeses settle at the end of a run
DEFAULT_CHAOS_NEMESIS_QUIESCENCE_WAIT = 3
DEFAULT_CHAOS_NTP_SERVER = "ntp.ubuntu.com"
DEFAULT_CHAOS_SERVICE = "cockroach"
DEFAULT_CHAOS_SERVICE_PROCESS = "cockroach"
DEFAULT_CHAOS_SSH_CONFIG_FILE = "~/.ssh/config"
DEFAULT_CHAOS_STROBE_DELTA = 200  # ms
DEFAULT_CHAOS_STROBE_DURATION = 10  # s
DEFAULT_CHAOS_STROBE_PERIOD = 10  # ms
DEFAULT_CHAOS_STROBE_TIME_COMMAND = "/opt/jepsen/strobe-time"
