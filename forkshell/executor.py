#!/usr/bin/env python3
"""
Executor for forkshell command trees.

This module realizes a parsed command tree as real processes, pipes and
descriptors. It has two halves:

- execute() runs in the interpreter. It forks one child per line, waits
  for it (or registers it as a background job) and returns a status.
- run() runs in a forked child and never returns. It either replaces the
  process image, continues inline with a sub-command, or exits.

Redirections, blocks and the right side of a list run inline in the
process that reached them; only pipes, lists (for their left side) and
background nodes create new processes.
"""

import logging
import os
import sys
from typing import Iterable, NoReturn, Optional, Tuple

from .command_parser import (
    Background, Block, Command, CommandList, Exec, Pipe, Redirect
)
from .errors import ExecutionError, FatalError
from .jobs import JobTable


logger = logging.getLogger(__name__)

FILE_MODE = 0o644


def _flush():
    sys.stdout.flush()
    sys.stderr.flush()


def _report(message: str):
    print(message, file=sys.stderr, flush=True)


class CommandExecutor:
    """
    Executes command trees by forking the process topology they describe.

    The job table is shared with the terminal session so the jobs
    built-in sees what background launches registered.
    """

    def __init__(self, jobs: Optional[JobTable] = None,
                 file_mode: int = FILE_MODE, poll_interval: float = 0.05):
        """Initialize with a job table and the mode for created files."""
        self.jobs = jobs if jobs is not None else JobTable()
        self.file_mode = file_mode
        self.poll_interval = poll_interval

    def execute(self, command: Command) -> int:
        """
        Execute a parsed line and return its exit status.

        A top-level Background is launched and registered without waiting
        (status 0). Anything else runs in a child that is waited for.
        Either way, finished background children are reaped afterwards.
        """
        if isinstance(command, Background):
            pid = self.spawn(command.command)
            print(f"[{pid}]", flush=True)
            self.jobs.add(pid)
            status = 0
        else:
            pid = self.spawn(command)
            status = self.jobs.wait_foreground(pid, self.poll_interval)

        self.jobs.poll_completed()
        return status

    def spawn(self, command: Command, rebind: Optional[Tuple[int, int]] = None,
              close_fds: Iterable[int] = ()) -> int:
        """
        Fork a child that runs command, and return its pid.

        In the child, rebind=(src, dst) duplicates src onto dst and every
        descriptor in close_fds is closed before the command runs.
        """
        _flush()
        try:
            pid = os.fork()
        except OSError as e:
            raise FatalError(f"fork: {e.strerror}") from e

        if pid == 0:
            self._run_child(command, rebind, close_fds)

        logger.debug("forked pid %d for: %s", pid, command)
        return pid

    def _run_child(self, command: Command, rebind: Optional[Tuple[int, int]],
                   close_fds: Iterable[int]) -> NoReturn:
        # Nothing may unwind past this frame into the parent's stack
        try:
            if rebind is not None:
                os.dup2(*rebind)
            for fd in close_fds:
                os.close(fd)
            self.run(command)
        except ExecutionError as e:
            _report(str(e))
        except FatalError as e:
            _report(f"panic: {e}")
        except Exception:
            logger.exception("child %d failed running: %s", os.getpid(), command)
        finally:
            self._exit(1)

    @staticmethod
    def _exit(status: int) -> NoReturn:
        _flush()
        os._exit(status)

    @staticmethod
    def _wait(pid: int) -> int:
        _, status = os.waitpid(pid, 0)
        return os.waitstatus_to_exitcode(status)

    def run(self, command: Command) -> NoReturn:
        """Run command in the current process. Never returns."""
        if isinstance(command, Exec):
            self._run_exec(command)
        elif isinstance(command, Redirect):
            self._run_redirect(command)
        elif isinstance(command, CommandList):
            self._run_list(command)
        elif isinstance(command, Pipe):
            self._run_pipe(command)
        elif isinstance(command, Background):
            self._run_background(command)
        elif isinstance(command, Block):
            self.run(command.command)
        raise TypeError(f"cannot run {command!r}")

    def _run_exec(self, command: Exec) -> NoReturn:
        if not command.argv:
            self._exit(1)

        args = command.args
        logger.debug("pid %d exec %s", os.getpid(), args)
        _flush()
        try:
            os.execvp(args[0], args)
        except OSError as e:
            raise ExecutionError(f"exec {args[0]} failed") from e

    def _run_redirect(self, command: Redirect) -> NoReturn:
        try:
            fd = os.open(command.file.text, command.mode.flags, self.file_mode)
        except OSError as e:
            raise ExecutionError(f"open {command.file} failed") from e

        if fd == command.fd:
            # The slot was already free; os.open() fds are not inherited by exec
            os.set_inheritable(fd, True)
        else:
            os.dup2(fd, command.fd)
            os.close(fd)

        self.run(command.command)

    def _run_list(self, command: CommandList) -> NoReturn:
        pid = self.spawn(command.left)
        self._wait(pid)
        self.run(command.right)

    def _run_pipe(self, command: Pipe) -> NoReturn:
        try:
            read_fd, write_fd = os.pipe()
        except OSError as e:
            raise FatalError(f"pipe: {e.strerror}") from e

        ends = (read_fd, write_fd)
        left = self.spawn(command.left, rebind=(write_fd, 1), close_fds=ends)
        right = self.spawn(command.right, rebind=(read_fd, 0), close_fds=ends)

        os.close(read_fd)
        os.close(write_fd)
        self._wait(left)
        self._wait(right)

        # Stage statuses are not propagated
        self._exit(0)

    def _run_background(self, command: Background) -> NoReturn:
        pid = self.spawn(command.command)
        logger.debug("pid %d launched background pid %d", os.getpid(), pid)
        self._exit(0)
