#!/usr/bin/env python3
"""
Terminal session for forkshell.

This module provides the input loop around the parser and executor:
reading bounded lines from a terminal or a script, handling the few
built-in commands that must run inside the interpreter itself (cd, jobs,
exit), and reporting parse errors without executing anything.

Design Principles:
- Clean separation between parsing and execution
- Built-ins never fork; everything else goes through the executor
- A bad line costs that line only, never the session
"""

import argparse
import io
import logging
import os
import sys
from dataclasses import dataclass
from typing import List, Optional, TextIO

from .command_parser import CommandParser, MAX_ARGS
from .errors import FatalError, ParseError, TrailingInput
from .executor import CommandExecutor, FILE_MODE
from .jobs import JobTable, MAX_JOBS
from .tokenizer import SYMBOLS


logger = logging.getLogger(__name__)


@dataclass
class TerminalConfig:
    """Configuration for terminal session."""
    prompt: str = '$ '
    max_line: int = 100            # Buffer size; one slot is the terminator
    max_args: int = MAX_ARGS
    max_jobs: int = MAX_JOBS
    poll_interval: float = 0.05    # Foreground wait loop sleep, in seconds
    file_mode: int = FILE_MODE     # Permissions for files created by > and >>
    verbose: bool = False


def read_line(stream: TextIO, max_len: int) -> Optional[str]:
    """
    Read one line of at most max_len - 1 characters, without the newline.

    Characters beyond the bound are left in the stream and start the next
    line. Returns None at end of input when nothing was read.

    A stream backed by a descriptor is read one byte per os.read() call,
    never through Python's buffer: whatever follows the line must still be
    on the descriptor for the children that inherit it (cat reading the
    rest of the input, for instance).
    """
    try:
        fd = stream.fileno()
    except (AttributeError, io.UnsupportedOperation):
        fd = None

    if fd is not None:
        data = bytearray()
        byte = b""
        while len(data) < max_len - 1:
            byte = os.read(fd, 1)
            if not byte or byte == b'\n':
                break
            data += byte
        if not data and not byte:
            return None
        return data.decode('utf-8', errors='replace')

    chars = []
    while len(chars) < max_len - 1:
        char = stream.read(1)
        if not char:
            break
        if char == '\n':
            return ''.join(chars)
        chars.append(char)

    if not chars:
        return None
    return ''.join(chars)


class TerminalSession:
    """
    Main terminal session manager.

    This class provides the read-parse-execute loop and owns the job
    table shared by the executor and the jobs built-in.
    """

    def __init__(self, config: Optional[TerminalConfig] = None):
        """Initialize terminal session."""
        self.config = config or TerminalConfig()
        self.jobs = JobTable(self.config.max_jobs)
        self.parser = CommandParser(self.config.max_args)
        self.executor = CommandExecutor(
            self.jobs,
            file_mode=self.config.file_mode,
            poll_interval=self.config.poll_interval
        )
        self.running = False
        self.last_status = 0

        self.builtins = {
            'cd': self._cd,
            'jobs': self._jobs,
            'exit': self._exit,
            'quit': self._exit,
        }

    def _cd(self, args: List[str]) -> Optional[int]:
        """Change the interpreter's working directory."""
        if not args:
            return 0
        try:
            os.chdir(args[0])
        except OSError:
            print(f"cannot cd {args[0]}", file=sys.stderr)
            return 1
        return 0

    def _jobs(self, args: List[str]) -> Optional[int]:
        """List background pids still being tracked."""
        for pid in self.jobs.list_jobs():
            print(pid)
        return 0

    def _exit(self, args: List[str]) -> Optional[int]:
        return None

    def execute_command(self, command_line: str) -> Optional[int]:
        """
        Execute a command line and return its exit status.

        Returns None when the line asks the session to end.
        """
        words = command_line.split()
        if not words:
            return 0

        # Built-ins only apply to a line that is a single simple command.
        builtin = self.builtins.get(words[0])
        if builtin is not None and not any(c in SYMBOLS for c in command_line):
            return builtin(words[1:])

        try:
            command = self.parser.parse(command_line)
        except ParseError as e:
            if isinstance(e, TrailingInput):
                print(f"leftovers: {e.fragment}", file=sys.stderr)
            print(f"syntax error: {e}", file=sys.stderr)
            return 1

        logger.debug("parsed: %r", command)
        return self.executor.execute(command)

    def run(self, stream: TextIO, interactive: bool = False) -> int:
        """
        Run every line from stream and return the last exit status.

        Prompts are only written when interactive is set.
        """
        self.running = True

        while self.running:
            if interactive:
                sys.stdout.write(self.config.prompt)
                sys.stdout.flush()

            line = read_line(stream, self.config.max_line)
            if line is None:
                break

            status = self.execute_command(line)
            if status is None:
                break
            self.last_status = status

        self.running = False
        return self.last_status

    def run_interactive(self) -> int:
        """Run the REPL on standard input."""
        return self.run(sys.stdin, interactive=sys.stdin.isatty())

    def run_script(self, path: str) -> int:
        """Run every line of a script file."""
        try:
            script = open(path)
        except OSError:
            print(f"sh: cannot open {path}")
            return 1
        with script:
            return self.run(script)

    def run_command(self, command_line: str) -> int:
        """
        Run a single command line and return its status.

        This method is useful for non-interactive use.
        """
        status = self.execute_command(command_line)
        return status if status is not None else self.last_status


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for forkshell."""
    parser = argparse.ArgumentParser(prog='forkshell', description='forkshell command interpreter')
    parser.add_argument('script', nargs='?', help='Run commands from this file')
    parser.add_argument('-c', '--command', help='Execute command and exit')
    parser.add_argument('-v', '--verbose', action='store_true', help='Trace forks, execs and waits on stderr')
    args = parser.parse_args(argv)

    config = TerminalConfig(verbose=args.verbose)
    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format='%(name)s[%(process)d]: %(message)s'
    )
    session = TerminalSession(config=config)

    try:
        if args.command:
            return session.run_command(args.command)
        if args.script:
            return session.run_script(args.script)
        return session.run_interactive()
    except FatalError as e:
        print(f"panic: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
