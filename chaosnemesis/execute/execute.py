import abc
import os

from collections import namedtuple
from functools import partial

from logzero import logger
from multiprocessing.pool import ThreadPool

from fabric import Connection, Config
from paramiko import AuthenticationException

from chaosnemesis.common import (NodeResult, DEFAULT_CHAOS_COMMAND_TIMEOUT,
                                 DEFAULT_CHAOS_CONNECT_TIMEOUT)

from typing import Callable, Dict, List

Result = namedtuple('Result', ['return_code', 'stdout', 'stderr'])


class RemoteExecutor(object, metaclass=abc.ABCMeta):

    def execute(self, host: str, action: str, user: str = None, as_sudo=False, **kwargs) -> Result:
        rtn = self._execute_on_host(host, action, user=user, as_sudo=as_sudo, **kwargs)
        return rtn

    @abc.abstractmethod
    def _execute_on_host(self, host: str, action: str, user: str = None, as_sudo=False, **kwargs) -> Result:
        raise NotImplementedError('users must define _execute_on_host to use this base class')


class FabricExecutor(RemoteExecutor):
    config = None

    def __init__(self, ssh_config_file=None, identity_file=None,
                 connect_timeout=DEFAULT_CHAOS_CONNECT_TIMEOUT):
        self.config = FabricExecutor._create_config(ssh_config_file=ssh_config_file)
        self.connect_kwargs = FabricExecutor._collect_connect_kwargs(identity_file)
        self.connect_timeout = connect_timeout

    @staticmethod
    def _create_config(ssh_config_file=None):
        if ssh_config_file:
            FabricExecutor._is_readable_file(ssh_config_file, 'ssh_config')
        return Config(runtime_ssh_path=ssh_config_file)

    @staticmethod
    def _is_readable_file(path, file_kind):
        if not isinstance(path, str):
            raise ValueError("path to file must be a string")

        if os.access(path, os.R_OK):
            if os.path.isfile(path):
                return
            else:
                raise OSError("Path is not to a file -- '%s'" % str(path))
        else:
            raise OSError("Unable to access the file (not readable) -- %s -- '%s'" % (file_kind, path))

    @staticmethod
    def _collect_connect_kwargs(identity_file):
        connect_kwargs = {}

        if identity_file:
            FabricExecutor._is_readable_file(identity_file, 'identity_file')
            connect_kwargs['key_filename'] = identity_file

        if not connect_kwargs:
            connect_kwargs = None

        return connect_kwargs

    def _execute_on_host(self, host: str, action: str, user: str = None, as_sudo=False,
                         timeout=DEFAULT_CHAOS_COMMAND_TIMEOUT) -> Result:
        logger.debug("host: %s -- action: %s -- as_sudo: %s -- timeout: %s",
                     host, action, as_sudo, timeout)
        try:
            with Connection(host, config=self.config, user=user,
                            connect_timeout=self.connect_timeout,
                            connect_kwargs=self.connect_kwargs) as c:
                # warn=True hands non-zero exits back as data instead of
                # raising UnexpectedExit
                if as_sudo:
                    rtn = c.sudo(action, hide=True, warn=True, timeout=timeout)
                else:
                    rtn = c.run(action, hide=True, warn=True, timeout=timeout)
        except AuthenticationException as e:
            logger.error("Failed to authenticate to %s", host)
            raise e

        return Result(rtn.return_code, rtn.stdout, rtn.stderr)


class ParallelExecutor(object):
    """
    Fan a callable out over a set of hosts and wait for every host to answer.

    Each host's outcome is captured as a NodeResult. An exception raised for
    one host is logged and recorded as that host's failure; it never aborts
    the work on the other hosts.
    """

    def __init__(self, processes: int = None):
        self._processes = processes

    @staticmethod
    def _call(fn, host):
        try:
            return NodeResult.success(fn(host))
        except Exception as e:
            logger.error("Action failed on host %s: %s", host, e)
            logger.exception(e)
            return NodeResult.failure(e)

    def map(self, fn: Callable, hosts: List[str]) -> Dict[str, NodeResult]:
        hosts = list(hosts)
        if not hosts:
            return {}
        pool = ThreadPool(processes=self._processes or len(hosts))
        try:
            results = pool.map(partial(ParallelExecutor._call, fn), hosts)
        finally:
            pool.close()
            pool.join()
        return dict(zip(hosts, results))
