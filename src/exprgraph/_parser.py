"""Recursive-descent evaluator for expression source text.

The grammar is evaluated while it is parsed; no syntax tree is built.
Levels, from lowest to highest precedence:

    or_expr      := and_expr ("or" and_expr)*
    and_expr     := equality ("and" equality)*
    equality     := additive (("==" | "!=" | "<" | "<=" | ">" | ">=") additive)*
    additive     := multiplicative (("+" | "-") multiplicative)*
    multiplicative := power (("*" | "/" | "%") power)*
    power        := unary ("^" unary)?
    unary        := ("+" | "-")? concat
    concat       := primary ("~" primary)*
    primary      := identifier | number | "(" additive ")" | function "(" additive ")"
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ._errors import EvaluationRuntimeError, ExpressionSyntaxError
from ._lexer import Lexer, TokenKind

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    from ._lexer import Token

DEFAULT_MAX_DEPTH = 100

RESERVED_CONSTANTS: dict[str, float] = {"pi": math.pi, "e": math.e}

# Largest magnitude below which every integer is an exact float
_MAX_EXACT_INTEGER = 2**53

_COMPARISONS: dict[TokenKind, Callable[[float, float], bool]] = {
    TokenKind.EQUAL_TO: lambda x, y: x == y,
    TokenKind.NOT_EQUAL: lambda x, y: x != y,
    TokenKind.LESS_THAN: lambda x, y: x < y,
    TokenKind.LESS_THAN_EQUAL: lambda x, y: x <= y,
    TokenKind.GREATER_THAN: lambda x, y: x > y,
    TokenKind.GREATER_THAN_EQUAL: lambda x, y: x >= y,
}


@dataclass(frozen=True, slots=True)
class ParseContext:
    """Everything an expression is evaluated against.

    Attributes:
        symbols: Identifier to value mapping visible to the expression.
        max_depth: Maximum nesting of parentheses and function calls.

    """

    symbols: Mapping[str, float]
    max_depth: int = DEFAULT_MAX_DEPTH


def _check_domain(base: float, exponent: float) -> None:
    """Reject roots of negative numbers."""
    if base >= 0:
        return
    if 0 < abs(exponent) < 1:
        msg = "attempt to take root of a negative number"
        raise EvaluationRuntimeError(msg)


def join_numbers(x: float, y: float) -> float:
    """Join the decimal digits of two integral numbers: `join_numbers(12, 34) == 1234`.

    The joined integer must be exactly representable as a float, so its
    magnitude may not exceed 2**53.

    Raises:
        EvaluationRuntimeError: If an operand is not integral, the right operand
            is negative, or the joined integer exceeds 2**53.

    """
    if not x.is_integer() or not y.is_integer():
        msg = "attempting to join two non-integer numbers (integer~integer)"
        raise EvaluationRuntimeError(msg)
    if y < 0:
        msg = "cannot join a negative number on the right of '~'"
        raise EvaluationRuntimeError(msg)
    joined = int(f"{int(x)}{int(y)}")
    if abs(joined) > _MAX_EXACT_INTEGER:
        msg = "joined number is too large to be represented exactly (limit 2**53)"
        raise EvaluationRuntimeError(msg)
    return float(joined)


def _truncate(x: float) -> float:
    return float(math.ceil(x)) if x < 0 else float(math.floor(x))


def _tan(x: float) -> float:
    if math.cos(x) == 0:
        msg = f"invalid argument to tan: {x:g}"
        raise EvaluationRuntimeError(msg)
    return math.tan(x)


def _log(x: float) -> float:
    if x < 1:
        msg = f"invalid argument to log: {x:g}"
        raise EvaluationRuntimeError(msg)
    return math.log(x)


def _log10(x: float) -> float:
    if x < 1:
        msg = f"invalid argument to log10: {x:g}"
        raise EvaluationRuntimeError(msg)
    return math.log10(x)


def _sqrt(x: float) -> float:
    if x < 0:
        msg = "attempt to take square root of negative number"
        raise EvaluationRuntimeError(msg)
    return math.sqrt(x)


_FUNCTIONS: dict[str, Callable[[float], float]] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": _tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "log": _log,
    "exp": math.exp,
    "log10": _log10,
    "sqrt": _sqrt,
    "int": _truncate,
}


def _apply(func: Callable[..., float], *args: float) -> float:
    """Call a math routine, reporting domain and range failures as runtime errors."""
    try:
        return func(*args)
    except (ValueError, OverflowError) as e:
        msg = f"math error: {e}"
        raise EvaluationRuntimeError(msg) from e


class _Evaluator:
    """Evaluates one expression. Owns a fresh lexer for the duration of the parse."""

    def __init__(self, source: str, context: ParseContext) -> None:
        self._lexer = Lexer(source)
        self._context = context
        self._depth = 0

    @property
    def _token(self) -> Token:
        return self._lexer.current

    def run(self) -> float:
        result = self._or_expr()
        if self._token.kind is not TokenKind.EOF:
            msg = f"unexpected token '{self._token}' after expression"
            raise ExpressionSyntaxError(msg, position=self._token.position, token=self._token.text)
        return result

    def _or_expr(self) -> float:
        result = self._and_expr()
        while self._token.kind is TokenKind.OR:
            self._lexer.advance()
            rhs = self._and_expr()
            result = float(bool(result) or bool(rhs))
        return result

    def _and_expr(self) -> float:
        result = self._equality()
        while self._token.kind is TokenKind.AND:
            self._lexer.advance()
            rhs = self._equality()
            result = float(bool(result) and bool(rhs))
        return result

    def _equality(self) -> float:
        result = self._additive()
        while (compare := _COMPARISONS.get(self._token.kind)) is not None:
            self._lexer.advance()
            result = float(compare(result, self._additive()))
        return result

    def _additive(self) -> float:
        result = self._multiplicative()
        while True:
            match self._token.kind:
                case TokenKind.PLUS:
                    self._lexer.advance()
                    result += self._multiplicative()
                case TokenKind.MINUS:
                    self._lexer.advance()
                    result -= self._multiplicative()
                case _:
                    return result

    def _multiplicative(self) -> float:
        result = self._power()
        while True:
            match self._token.kind:
                case TokenKind.MUL:
                    self._lexer.advance()
                    result *= self._power()
                case TokenKind.DIV:
                    self._lexer.advance()
                    divisor = self._power()
                    if divisor == 0:
                        msg = "attempt to divide by zero"
                        raise EvaluationRuntimeError(msg)
                    result /= divisor
                case TokenKind.MOD:
                    self._lexer.advance()
                    divisor = self._power()
                    if divisor == 0:
                        msg = "attempt to take modulo by zero"
                        raise EvaluationRuntimeError(msg)
                    result = _apply(math.fmod, result, divisor)
                case _:
                    return result

    def _power(self) -> float:
        result = self._unary()
        if self._token.kind is TokenKind.POW:
            self._lexer.advance()
            exponent = self._unary()
            _check_domain(result, exponent)
            return _apply(math.pow, result, exponent)
        return result

    def _unary(self) -> float:
        match self._token.kind:
            case TokenKind.PLUS:
                self._lexer.advance()
                return +self._concat()
            case TokenKind.MINUS:
                self._lexer.advance()
                return -self._concat()
            case _:
                return self._concat()

    def _concat(self) -> float:
        result = self._primary()
        while self._token.kind is TokenKind.CONCAT:
            self._lexer.advance()
            result = join_numbers(result, self._primary())
        return result

    def _primary(self) -> float:
        token = self._token
        match token.kind:
            case TokenKind.IDENTIFIER:
                self._lexer.advance()
                try:
                    return float(self._context.symbols[token.text])
                except KeyError:
                    msg = f"symbol '{token.text}' not found"
                    raise ExpressionSyntaxError(msg, position=token.position, token=token.text) from None
            case TokenKind.NUMBER:
                self._lexer.advance()
                return float(token.text)
            case TokenKind.LPAREN:
                self._lexer.advance()
                return self._nested("missing ) after subexpression")
            case TokenKind.FUNCTION:
                func = _FUNCTIONS.get(token.text)
                if func is None:
                    msg = f"unsupported function '{token.text}'"
                    raise ExpressionSyntaxError(msg, position=token.position, token=token.text)
                self._lexer.advance()
                if self._token.kind is not TokenKind.LPAREN:
                    msg = f"missing ( after function name '{token.text}'"
                    raise ExpressionSyntaxError(msg, position=self._token.position, token=self._token.text)
                self._lexer.advance()
                arg = self._nested("missing ) after function argument")
                return _apply(func, arg)
            case _:
                msg = f"invalid primary expression at '{token}'"
                raise ExpressionSyntaxError(msg, position=token.position, token=token.text)

    def _nested(self, missing_paren: str) -> float:
        """Evaluate an additive expression closed by `)`; the `(` is already consumed."""
        self._depth += 1
        if self._depth > self._context.max_depth:
            msg = f"expression nested deeper than {self._context.max_depth} levels"
            raise ExpressionSyntaxError(msg, position=self._token.position, token=self._token.text)
        result = self._additive()
        if self._token.kind is not TokenKind.RPAREN:
            raise ExpressionSyntaxError(missing_paren, position=self._token.position, token=self._token.text)
        self._lexer.advance()
        self._depth -= 1
        return result


def evaluate_expression(
    source: str,
    symbols: Mapping[str, float] | None = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> float:
    """Evaluate a single expression.

    The reserved constants `pi` and `e` are always visible and cannot be
    shadowed by `symbols`.

    Args:
        source: Expression text, e.g. `"a1 * 2 + sqrt(b)"`.
        symbols: Identifier values the expression may reference.
        max_depth: Maximum nesting of parentheses and function calls.

    Returns:
        The value of the expression.

    Raises:
        LexicalError: If the text contains an invalid token.
        ExpressionSyntaxError: If the text is malformed or references an unknown symbol.
        EvaluationRuntimeError: On division by zero or a math domain violation.

    Example:
        >>> evaluate_expression("a1 + 1", {"a1": 5})
        6.0

    """
    table = {**(symbols or {}), **RESERVED_CONSTANTS}
    return evaluate_in_context(source, ParseContext(symbols=table, max_depth=max_depth))


def evaluate_in_context(source: str, context: ParseContext) -> float:
    """Evaluate a single expression against an explicit context."""
    return _Evaluator(source, context).run()


def iter_identifier_tokens(source: str) -> Iterator[Token]:
    """Yield the identifier tokens of an expression, in source order.

    Function names and logical keywords are not identifiers. Nothing is
    evaluated, so unknown identifiers are yielded like any other.

    Raises:
        LexicalError: If the text contains an invalid token.

    """
    for token in Lexer(source):
        if token.kind is TokenKind.IDENTIFIER:
            yield token


def extract_identifiers(source: str) -> list[str]:
    """Return the identifiers referenced by an expression, in source order with repeats.

    Example:
        >>> extract_identifiers("a + sin(b) * a")
        ['a', 'b', 'a']

    """
    return [token.text for token in iter_identifier_tokens(source)]
