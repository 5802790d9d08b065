import re

from chaosnemesis.common import DEFAULT_CHAOS_CLOCK_TOLERANCE
from chaosnemesis.control import TestContext, on_nodes, exec_on
from logzero import logger

from typing import Dict

# ntpdate -q prints one 'server <ip>, stratum <n>, offset <seconds>, ...' line
# per server it queried.
OFFSET_PATTERN = re.compile(r"offset\s+(-?\d+(?:\.\d+)?)")


def parse_offset(output: str) -> float:
    """
    Extract the clock offset in seconds from ntpdate -q output. When several
    servers answered, the first offset is used.

    :raises ValueError: if no offset can be found.
    """
    match = OFFSET_PATTERN.search(output)
    if not match:
        raise ValueError("No clock offset in ntpdate output: {}".format(output))
    return float(match.group(1))


def clock_offset(context: TestContext, node: str) -> float:
    output = exec_on(context, node, "ntpdate -q {}".format(context.ntp_server))
    return parse_offset(output)


def clock_offsets(context: TestContext) -> Dict:
    """Offset, in seconds, of every node's clock from the NTP server."""
    return on_nodes(context, clock_offset)


def clocks_synchronized(context: TestContext,
                        tolerance: float = DEFAULT_CHAOS_CLOCK_TOLERANCE) -> bool:
    """
    Is every node's clock within tolerance seconds of the NTP server?

    :param context: The test context.
    :param tolerance: Largest acceptable absolute offset, in seconds.
    :return: bool
    """
    offsets = clock_offsets(context)
    skewed = {}
    for node, result in offsets.items():
        if not result.ok:
            skewed[node] = result.value
        elif abs(result.value) > tolerance:
            skewed[node] = result.value
    if skewed:
        logger.error("Clocks out of sync: %s", skewed)
        return False
    logger.debug("Clocks synchronized within %s s", tolerance)
    return True
