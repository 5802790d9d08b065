from chaosnemesis.control import TestContext, CommandError, on_nodes
from logzero import logger

from typing import Dict


def process_running(context: TestContext, node: str) -> bool:
    """
    Is the database process running on a node?

    pgrep exits 1 when nothing matches, which is an answer rather than a
    failure, so the executor is called directly instead of through exec_on.
    """
    command = "pgrep -x {}".format(context.process)
    result = context.executor.execute(node, command, as_sudo=True,
                                      timeout=context.command_timeout)
    if result.return_code not in [0, 1]:
        raise CommandError(node, command, result)
    return result.return_code == 0


def processes_running(context: TestContext) -> Dict:
    return on_nodes(context, process_running)


def all_nodes_up(context: TestContext) -> bool:
    """
    Is the database process running on every node?

    :param context: The test context.
    :return: bool
    """
    results = processes_running(context)
    down = sorted(node for node, result in results.items()
                  if not (result.ok and result.value))
    if down:
        logger.error("Database is not running on %s", down)
        return False
    return True
