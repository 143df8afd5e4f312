#!/usr/bin/env python3
"""
Command parser for forkshell.

This module translates a command line into a command tree describing the
process topology to build: simple execution, redirection, pipelines,
sequential lists, background execution and parenthesized groups.

Grammar:

    line     := pipeline ('&')* (';' line)?
    pipeline := exec ('|' pipeline)?
    exec     := block | simple
    block    := '(' line ')' redirs
    simple   := redirs (WORD redirs)*
    redirs   := (('<' | '>' | '>>') WORD)*

Design Principles:
- Single responsibility: Parse commands, don't execute them
- One token of lookahead, one method per grammar rule
- Immutable trees: every node owns its children exclusively
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Tuple

from .errors import (
    MissingRedirectTarget, ShellSyntaxError, TooManyArguments,
    TrailingInput, UnbalancedParentheses
)
from .tokenizer import Scanner, Token, TokenType


MAX_ARGS = 10


class RedirectMode(Enum):
    """Types of IO redirection."""
    READ = '<'       # Read from file
    WRITE = '>'      # Overwrite file
    APPEND = '>>'    # Append to file

    @property
    def flags(self) -> int:
        """Flags for os.open()."""
        if self is RedirectMode.READ:
            return os.O_RDONLY
        if self is RedirectMode.WRITE:
            return os.O_WRONLY | os.O_CREAT | os.O_TRUNC
        return os.O_WRONLY | os.O_CREAT | os.O_APPEND

    @property
    def fd(self) -> int:
        """The descriptor this redirection rebinds."""
        return 0 if self is RedirectMode.READ else 1


_REDIRECT_MODES = {
    TokenType.LESS: RedirectMode.READ,
    TokenType.GREAT: RedirectMode.WRITE,
    TokenType.DOUBLE_GREAT: RedirectMode.APPEND,
}


@dataclass(frozen=True)
class Word:
    """A word and the span of the line it came from."""
    text: str
    start: int
    end: int

    @classmethod
    def from_token(cls, token: Token) -> 'Word':
        return cls(token.text, token.start, token.end)

    def __str__(self) -> str:
        return self.text


class Command:
    """Base class for command tree nodes."""


@dataclass(frozen=True)
class Exec(Command):
    """
    A simple command: a program name followed by its arguments.

    An empty argv is legal to parse (a line holding only redirections)
    but fails when executed.
    """
    argv: Tuple[Word, ...] = ()

    @property
    def args(self) -> List[str]:
        return [word.text for word in self.argv]

    def __str__(self) -> str:
        return ' '.join(self.args)


@dataclass(frozen=True)
class Redirect(Command):
    """Rebinds one descriptor to a file, then runs the wrapped command."""
    command: Command
    file: Word
    mode: RedirectMode
    fd: int

    def __str__(self) -> str:
        return f"{self.command} {self.mode.value} {self.file}".lstrip()


@dataclass(frozen=True)
class Pipe(Command):
    """Standard output of left feeds standard input of right."""
    left: Command
    right: Command

    def __str__(self) -> str:
        return f"{self.left} | {self.right}"


@dataclass(frozen=True)
class CommandList(Command):
    """Sequential composition: left runs to completion, then right."""
    left: Command
    right: Command

    def __str__(self) -> str:
        return f"{self.left}; {self.right}"


@dataclass(frozen=True)
class Background(Command):
    """Runs the wrapped command without waiting for it."""
    command: Command

    def __str__(self) -> str:
        return f"{self.command} &"


@dataclass(frozen=True)
class Block(Command):
    """A parenthesized sub-line. Redirections after ')' apply to all of it."""
    command: Command

    def __str__(self) -> str:
        return f"({self.command})"


def iter_words(command: Command) -> Iterator[Word]:
    """
    Yield every word in a tree, left to right.

    Exec yields its arguments, Redirect its file name only; composite
    nodes recurse into their children.
    """
    if isinstance(command, Exec):
        yield from command.argv
    elif isinstance(command, Redirect):
        yield from iter_words(command.command)
        yield command.file
    elif isinstance(command, (Pipe, CommandList)):
        yield from iter_words(command.left)
        yield from iter_words(command.right)
    elif isinstance(command, (Background, Block)):
        yield from iter_words(command.command)


def _is_empty(command: Command) -> bool:
    return isinstance(command, Exec) and not command.argv


class CommandParser:
    """
    Recursive-descent parser for forkshell syntax.

    This parser handles:
    - Simple commands with up to max_args words
    - Redirections (<, >, >>) anywhere within a simple command
    - Pipes (|), right-associative
    - Sequences (;), right-associative
    - Background execution (&), postfix, wrapping the pipeline before it
    - Parenthesized groups with their own trailing redirections
    """

    def __init__(self, max_args: int = MAX_ARGS):
        """Initialize the parser."""
        self.max_args = max_args

    def parse(self, command_line: str) -> Command:
        """
        Parse a complete command line into a command tree.

        Raises a ParseError subclass if the line is malformed; no partial
        tree is ever returned.
        """
        scanner = Scanner(command_line)
        command = self._parse_line(scanner)
        if not scanner.at_end():
            raise TrailingInput('leftovers', scanner.rest(), scanner.pos)
        return command

    def _parse_line(self, scanner: Scanner) -> Command:
        command = self._parse_pipeline(scanner)

        # Each '&' wraps again; "a & &" nests two Background nodes
        while scanner.peek_is_one_of('&'):
            scanner.next_token()
            command = Background(command)

        if scanner.peek_is_one_of(';'):
            scanner.next_token()
            command = CommandList(command, self._parse_line(scanner))

        return command

    def _parse_pipeline(self, scanner: Scanner) -> Command:
        command = self._parse_exec(scanner)

        if scanner.peek_is_one_of('|'):
            bar = scanner.next_token()
            if _is_empty(command):
                raise ShellSyntaxError("missing command before '|'", bar.text, bar.start)
            right = self._parse_pipeline(scanner)
            if _is_empty(right):
                raise ShellSyntaxError("missing command after '|'",
                                       scanner.rest() or bar.text, bar.start)
            command = Pipe(command, right)

        return command

    def _parse_exec(self, scanner: Scanner) -> Command:
        if scanner.peek_is_one_of('('):
            return self._parse_block(scanner)

        words: List[Word] = []
        redirects = self._parse_redirs(scanner)

        while not scanner.peek_is_one_of('|)&;'):
            token = scanner.next_token()
            if token.type is TokenType.END:
                break
            if not token.is_word():
                raise ShellSyntaxError('unexpected token', token.text, token.start)
            words.append(Word.from_token(token))
            if len(words) > self.max_args:
                raise TooManyArguments(f'too many args (max {self.max_args})',
                                       token.text, token.start)
            redirects.extend(self._parse_redirs(scanner))

        return self._wrap(Exec(tuple(words)), redirects)

    def _parse_block(self, scanner: Scanner) -> Command:
        paren = scanner.next_token()
        command = self._parse_line(scanner)

        if not scanner.peek_is_one_of(')'):
            raise UnbalancedParentheses('missing )', scanner.rest() or paren.text,
                                        scanner.pos)
        scanner.next_token()

        return self._wrap(Block(command), self._parse_redirs(scanner))

    def _parse_redirs(self, scanner: Scanner) -> List[Tuple[RedirectMode, Word]]:
        """Collect redirections in the order they appear."""
        redirects = []
        while scanner.peek_is_one_of('<>'):
            operator = scanner.next_token()
            target = scanner.next_token()
            if not target.is_word():
                raise MissingRedirectTarget('missing file for redirection',
                                            operator.text, operator.start)
            redirects.append((_REDIRECT_MODES[operator.type], Word.from_token(target)))
        return redirects

    @staticmethod
    def _wrap(command: Command, redirects: List[Tuple[RedirectMode, Word]]) -> Command:
        """Nest redirections around command; the last one parsed ends up outermost."""
        for mode, target in redirects:
            command = Redirect(command, target, mode, mode.fd)
        return command


_default_parser = CommandParser()


def parse(command_line: str) -> Command:
    """Parse a line with the default parser."""
    return _default_parser.parse(command_line)
