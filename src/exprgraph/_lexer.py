"""Tokenizer for expression source text."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from ._errors import LexicalError

if TYPE_CHECKING:
    from collections.abc import Iterator


class TokenKind(StrEnum):
    """The kind of a token.

    Operator and punctuation kinds use their literal text as value.
    """

    IDENTIFIER = "identifier"
    NUMBER = "number"
    FUNCTION = "function"  # One of FUNCTION_NAMES, the name is the token text
    AND = "and"
    OR = "or"
    EQUAL_TO = "=="
    NOT_EQUAL = "!="
    LESS_THAN = "<"
    LESS_THAN_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_THAN_EQUAL = ">="
    PLUS = "+"
    MINUS = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "^"
    LPAREN = "("
    RPAREN = ")"
    CONCAT = "~"
    EOF = "eof"


FUNCTION_NAMES = frozenset(
    {"sin", "cos", "tan", "asin", "acos", "atan", "log", "exp", "log10", "exp10", "sqrt", "int"},
)

_KEYWORDS = {"and": TokenKind.AND, "or": TokenKind.OR}

_SINGLE_CHAR_TOKENS = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.MUL,
    "/": TokenKind.DIV,
    "%": TokenKind.MOD,
    "^": TokenKind.POW,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "~": TokenKind.CONCAT,
}


@dataclass(frozen=True, slots=True)
class Token:
    """A token together with its literal text and offset in the source."""

    kind: TokenKind
    text: str
    position: int

    def __str__(self) -> str:
        return self.text if self.kind is not TokenKind.EOF else "end of input"


def _is_letter(c: str) -> bool:
    return c.isascii() and c.isalpha()


def _is_digit(c: str) -> bool:
    return c.isascii() and c.isdigit()


class Lexer:
    """Forward-only, single-lookahead token stream over one source string.

    The lexer owns its source for its whole lifetime. There is no rewind:
    to read the same text again, build a new lexer.

    Example:
        >>> lexer = Lexer("a1 + 2")
        >>> lexer.current.kind
        <TokenKind.IDENTIFIER: 'identifier'>
        >>> lexer.advance().text
        '+'

    """

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self.current = self._next_token()

    @property
    def source(self) -> str:
        return self._source

    def advance(self) -> Token:
        """Move to the next token and return it. The end-of-input token is sticky."""
        if self.current.kind is not TokenKind.EOF:
            self.current = self._next_token()
        return self.current

    def __iter__(self) -> Iterator[Token]:
        """Yield the remaining tokens, ending with the end-of-input token."""
        while True:
            token = self.current
            yield token
            if token.kind is TokenKind.EOF:
                return
            self.advance()

    def _peek(self, offset: int = 0) -> str:
        index = self._pos + offset
        return self._source[index] if index < len(self._source) else ""

    def _next_token(self) -> Token:  # noqa: C901
        while self._peek().isspace():
            self._pos += 1

        start = self._pos
        c = self._peek()
        if not c:
            return Token(TokenKind.EOF, "", start)

        if _is_letter(c):
            while _is_letter(self._peek()) or _is_digit(self._peek()):
                self._pos += 1
            text = self._source[start : self._pos]
            if text in _KEYWORDS:
                return Token(_KEYWORDS[text], text, start)
            if text in FUNCTION_NAMES:
                return Token(TokenKind.FUNCTION, text, start)
            return Token(TokenKind.IDENTIFIER, text, start)

        if _is_digit(c):
            self._scan_digits()
            # An optional fraction, possibly empty ("1." is a number)
            if self._peek() == ".":
                self._pos += 1
                self._scan_digits()
            self._scan_exponent(start)
            return Token(TokenKind.NUMBER, self._source[start : self._pos], start)

        if c == ".":
            self._pos += 1
            if not _is_digit(self._peek()):
                text = self._source[start : self._pos + 1]
                msg = f"Not a valid token '{text}'"
                raise LexicalError(msg, position=start, token=text)
            self._scan_digits()
            self._scan_exponent(start)
            return Token(TokenKind.NUMBER, self._source[start : self._pos], start)

        self._pos += 1
        if c in _SINGLE_CHAR_TOKENS:
            return Token(_SINGLE_CHAR_TOKENS[c], c, start)
        if c in "<>":
            if self._peek() == "=":
                self._pos += 1
                kind = TokenKind.LESS_THAN_EQUAL if c == "<" else TokenKind.GREATER_THAN_EQUAL
                return Token(kind, c + "=", start)
            return Token(TokenKind.LESS_THAN if c == "<" else TokenKind.GREATER_THAN, c, start)
        if c in "=!" and self._peek() == "=":
            self._pos += 1
            kind = TokenKind.EQUAL_TO if c == "=" else TokenKind.NOT_EQUAL
            return Token(kind, c + "=", start)

        msg = f"Not a valid token '{c}'"
        raise LexicalError(msg, position=start, token=c)

    def _scan_digits(self) -> None:
        while _is_digit(self._peek()):
            self._pos += 1

    def _scan_exponent(self, start: int) -> None:
        """Consume an exponent part (`e`, optional sign, digits) if one starts here."""
        if self._peek() not in ("e", "E"):
            return
        self._pos += 1
        if self._peek() in ("+", "-"):
            self._pos += 1
        if not _is_digit(self._peek()):
            text = self._source[start : self._pos + 1]
            msg = f"Not a valid token '{text}'"
            raise LexicalError(msg, position=start, token=text)
        self._scan_digits()


def tokenize(source: str) -> list[Token]:
    """Tokenize a whole source string, including the trailing end-of-input token."""
    return list(Lexer(source))
