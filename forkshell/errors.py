#!/usr/bin/env python3
"""
Exception hierarchy for forkshell.

Three families, matching where a failure is allowed to travel:

- ParseError: detected from token structure alone. Aborts the current
  line; nothing from that line is executed.
- ExecutionError: a program that cannot be run or a redirection target
  that cannot be opened. Only ever raised inside a forked child, which
  reports it and exits 1. The interpreter sees an exit status.
- FatalError: pipe or fork failure. Ends whichever process hit it.
"""

from typing import Optional


class ShellError(Exception):
    """Base class for all forkshell errors."""


class ParseError(ShellError):
    """A line could not be parsed."""

    reason = 'syntax error'

    def __init__(self, message: str, fragment: str = '', position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.fragment = fragment
        self.position = position

    def __str__(self) -> str:
        if self.fragment:
            return f"{self.message}: {self.fragment}"
        return self.message


class TrailingInput(ParseError):
    """Text was left over after a complete line was parsed."""

    reason = 'leftovers'


class UnbalancedParentheses(ParseError):
    """A '(' group was not closed."""

    reason = 'missing )'


class MissingRedirectTarget(ParseError):
    """A redirection operator was not followed by a file name."""

    reason = 'missing file for redirection'


class TooManyArguments(ParseError):
    """A simple command had more words than the argument bound."""

    reason = 'too many args'


class ShellSyntaxError(ParseError):
    """An unexpected token where a word or operator was required."""


class ExecutionError(ShellError):
    """A child process could not do what its command asked."""


class FatalError(ShellError):
    """A process primitive failed (pipe, fork)."""
