#!/usr/bin/env python3
"""
Tokenizer for forkshell command lines.

Splits a raw line into words and operator tokens. There is no quoting
and no escaping: a word is any run of characters that are neither
whitespace nor one of the operator symbols.
"""

from dataclasses import dataclass
from enum import Enum


WHITESPACE = ' \t\r\n\v'
SYMBOLS = '<|>&;()'


class TokenType(Enum):
    """Token classifications."""
    END = ''
    WORD = 'a'
    PIPE = '|'
    LESS = '<'
    GREAT = '>'
    DOUBLE_GREAT = '>>'
    AMP = '&'
    SEMICOLON = ';'
    LPAREN = '('
    RPAREN = ')'


_SINGLE = {
    '|': TokenType.PIPE,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    ';': TokenType.SEMICOLON,
    '&': TokenType.AMP,
    '<': TokenType.LESS,
}


@dataclass(frozen=True)
class Token:
    """A token and the span of the line it was read from."""
    type: TokenType
    start: int
    end: int
    text: str = ''

    def is_word(self) -> bool:
        return self.type is TokenType.WORD


class Scanner:
    """
    Cursor over one command line.

    The cursor always rests on the next significant character (or the
    end), since whitespace is skipped both before and after each token.
    A NUL character ends the line just like the real end does.
    """

    def __init__(self, line: str):
        end = line.find('\0')
        self.line = line
        self.end = len(line) if end < 0 else end
        self.pos = 0

    def _skip_whitespace(self):
        while self.pos < self.end and self.line[self.pos] in WHITESPACE:
            self.pos += 1

    def next_token(self) -> Token:
        """Consume and return the next token."""
        self._skip_whitespace()
        start = self.pos

        if start >= self.end:
            return Token(TokenType.END, start, start)

        char = self.line[start]
        if char in _SINGLE:
            self.pos += 1
            kind = _SINGLE[char]
        elif char == '>':
            self.pos += 1
            kind = TokenType.GREAT
            # >> is the only two-character operator
            if self.pos < self.end and self.line[self.pos] == '>':
                self.pos += 1
                kind = TokenType.DOUBLE_GREAT
        else:
            while (self.pos < self.end
                   and self.line[self.pos] not in WHITESPACE
                   and self.line[self.pos] not in SYMBOLS):
                self.pos += 1
            kind = TokenType.WORD

        token = Token(kind, start, self.pos, self.line[start:self.pos])
        self._skip_whitespace()
        return token

    def peek_is_one_of(self, chars: str) -> bool:
        """True if the next significant character is in chars."""
        self._skip_whitespace()
        return self.pos < self.end and self.line[self.pos] in chars

    def at_end(self) -> bool:
        self._skip_whitespace()
        return self.pos >= self.end

    def rest(self) -> str:
        """The text not yet consumed."""
        return self.line[self.pos:self.end]


def tokenize(line: str):
    """List every token in line, excluding the final END token."""
    scanner = Scanner(line)
    tokens = []
    while True:
        token = scanner.next_token()
        if token.type is TokenType.END:
            return tokens
        tokens.append(token)
