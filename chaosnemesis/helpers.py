import logging

import logzero
from logzero import logger
from os.path import expanduser

from typing import List

levels = {
    'notset': logging.NOTSET,
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL
}


def configure_logging(level: str = 'info', logfile: str = None) -> None:
    """
    Set the chaosnemesis log level and, optionally, a log file.

    :param level: One of notset, debug, info, warning, error, critical.
    :type level: str
    :param logfile: Relative or absolute path of a file to also log to.
        Optional. (Default: None)
    :type logfile: str
    :return: None
    """
    try:
        loglevel = levels[level.lower()]
    except KeyError:
        raise ValueError("Expected one of the following log levels: {}".format(
            ', '.join(levels.keys())))
    logzero.loglevel(loglevel)
    if logfile:
        logzero.logfile(expanduser(logfile), loglevel=loglevel)
    logger.debug("Log level set to %s", level)


def get_nodes(nodes_file: str) -> List[str]:
    """
    Return the node aliases listed in a file, one per line, in file order.

    Blank lines and lines starting with '#' are skipped.

    :param nodes_file: The relative or absolute path to the nodes file.
        Required.
    :type nodes_file: str
    :return: List[str]
    """
    nodes = []
    with open(expanduser(nodes_file), 'r') as f:
        for line in f:
            alias = line.strip()
            if alias and not alias.startswith('#'):
                nodes.append(alias)
    return nodes
