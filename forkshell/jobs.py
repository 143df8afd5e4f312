#!/usr/bin/env python3
"""
Background job bookkeeping and child reaping.

The job table is an ordered list of pids in launch order. It is only
touched from the interpreter's single control path (insert on background
launch, remove on reap), so it needs no locking.
"""

import logging
import os
import time
from typing import List, Optional, Tuple

from .errors import FatalError


logger = logging.getLogger(__name__)

MAX_JOBS = 64


def _wait_any() -> Optional[Tuple[int, int]]:
    """
    Reap one finished child without blocking, or return None.

    Raises ChildProcessError when there are no children at all.
    """
    pid, status = os.waitpid(-1, os.WNOHANG)
    if pid == 0:
        return None
    return pid, os.waitstatus_to_exitcode(status)


class JobTable:
    """Tracks background processes until they are reaped."""

    def __init__(self, max_jobs: int = MAX_JOBS):
        self.max_jobs = max_jobs
        self._pids: List[int] = []

    def __len__(self) -> int:
        return len(self._pids)

    def __contains__(self, pid: int) -> bool:
        return pid in self._pids

    def add(self, pid: int):
        """Register a background pid. Ignored once the table is full."""
        if len(self._pids) < self.max_jobs:
            self._pids.append(pid)
        else:
            logger.debug("job table full, not tracking pid %d", pid)

    def remove(self, pid: int) -> bool:
        """Forget a pid. Returns False if it was not tracked."""
        try:
            self._pids.remove(pid)
        except ValueError:
            return False
        return True

    def list_jobs(self) -> List[int]:
        """Tracked pids in launch order."""
        return list(self._pids)

    def report(self, pid: int, status: int):
        """Announce a finished background child and stop tracking it."""
        print(f"[bg {pid}] exited with status {status}", flush=True)
        self.remove(pid)

    def poll_completed(self) -> List[Tuple[int, int]]:
        """
        Reap every child that has already finished.

        Never blocks. Each completion is reported and removed from the
        table; the (pid, status) pairs are returned in reap order.
        """
        completed = []
        while True:
            try:
                reaped = _wait_any()
            except ChildProcessError:
                reaped = None
            if reaped is None:
                return completed
            self.report(*reaped)
            completed.append(reaped)

    def wait_foreground(self, pid: int, poll_interval: float = 0.05) -> int:
        """
        Wait for one foreground child and return its exit status.

        Polls any child so background completions that happen meanwhile
        are reported as they occur instead of after the foreground ends.
        """
        while True:
            try:
                reaped = _wait_any()
            except ChildProcessError:
                raise FatalError(f"wait: no child {pid}") from None
            if reaped is None:
                time.sleep(poll_interval)
                continue
            reaped_pid, status = reaped
            if reaped_pid == pid:
                logger.debug("foreground pid %d exited with status %d", pid, status)
                return status
            self.report(reaped_pid, status)
