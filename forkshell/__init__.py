"""
forkshell - A small command interpreter built on fork, exec and pipes

This package provides a tokenizer and recursive-descent parser that turn a
command line into an immutable command tree, and an executor that realizes
the tree as cooperating processes connected by pipes and redirections.
"""

__version__ = "0.1.0"

from .errors import (
    ShellError,
    ParseError,
    TrailingInput,
    UnbalancedParentheses,
    MissingRedirectTarget,
    TooManyArguments,
    ShellSyntaxError,
    ExecutionError,
    FatalError,
)

from .tokenizer import (
    Scanner,
    Token,
    TokenType,
    tokenize,
)

from .command_parser import (
    Command,
    CommandParser,
    Exec,
    Redirect,
    RedirectMode,
    Pipe,
    CommandList,
    Background,
    Block,
    Word,
    iter_words,
    parse,
)

from .executor import CommandExecutor
from .jobs import JobTable

from .terminal import (
    TerminalSession,
    TerminalConfig,
    read_line,
)

__all__ = [
    # Errors
    "ShellError",
    "ParseError",
    "TrailingInput",
    "UnbalancedParentheses",
    "MissingRedirectTarget",
    "TooManyArguments",
    "ShellSyntaxError",
    "ExecutionError",
    "FatalError",

    # Tokenizer
    "Scanner",
    "Token",
    "TokenType",
    "tokenize",

    # Command tree and parser
    "Command",
    "CommandParser",
    "Exec",
    "Redirect",
    "RedirectMode",
    "Pipe",
    "CommandList",
    "Background",
    "Block",
    "Word",
    "iter_words",
    "parse",

    # Execution
    "CommandExecutor",
    "JobTable",

    # Terminal
    "TerminalSession",
    "TerminalConfig",
    "read_line",

    # Version info
    "__version__",
]
