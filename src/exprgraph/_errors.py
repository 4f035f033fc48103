"""Error types raised by the lexer, the parser and the expression engine.

Single-expression failures are raised as `ExpressionError` subclasses, each
tagged with an `ErrorKind`. The engine collects them into `ErrorRecord`s and
reports every problem found in one pass through an `EngineError` aggregate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


class ErrorKind(StrEnum):
    """The class of a failure."""

    LEXICAL = "lexical"  # Malformed token
    SYNTAX = "syntax"  # Unresolved identifier, malformed grammar, reserved name
    RUNTIME = "runtime"  # Zero division, math domain, non-integral concatenation
    PARSING = "parsing"  # Aggregate of lexical/syntax/runtime records
    CYCLIC_DEPENDENCY = "cyclic_dependency"  # Aggregate of dependency cycles

    @property
    def label(self) -> str:
        """Human readable label used when rendering records."""
        return self.value.replace("_", " ").capitalize()


class ExpressionError(Exception):
    """A failure while lexing or evaluating a single expression."""

    kind: ErrorKind = ErrorKind.SYNTAX

    def __init__(self, message: str, *, position: int | None = None, token: str | None = None) -> None:
        self.message = message
        self.position = position
        self.token = token
        super().__init__(message)


class LexicalError(ExpressionError):
    """The source contains a character sequence that is not a valid token."""

    kind = ErrorKind.LEXICAL


class ExpressionSyntaxError(ExpressionError):
    """The source is not a well-formed expression or names an unknown symbol."""

    kind = ErrorKind.SYNTAX


class EvaluationRuntimeError(ExpressionError):
    """The expression is well-formed but cannot be computed."""

    kind = ErrorKind.RUNTIME


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """One problem found while validating or evaluating registered expressions.

    Attributes:
        kind: The class of the problem.
        message: Description of the violated rule.
        identifier: Identifier of the offending expression, if any.
        expression_index: Position of the expression in the order it was processed.
        source: Source text of the offending expression.
        position: Character offset of the offending token within `source`.
        token: Text of the offending token.

    """

    kind: ErrorKind
    message: str
    identifier: str | None = None
    expression_index: int | None = None
    source: str | None = None
    position: int | None = None
    token: str | None = None

    @classmethod
    def from_exception(
        cls,
        exc: ExpressionError,
        *,
        identifier: str,
        expression_index: int,
        source: str,
    ) -> ErrorRecord:
        """Build a record from a single-expression failure."""
        return cls(
            kind=exc.kind,
            message=exc.message,
            identifier=identifier,
            expression_index=expression_index,
            source=source,
            position=exc.position,
            token=exc.token,
        )

    def __str__(self) -> str:
        text = f"{self.kind.label} error: {self.message}"
        if self.expression_index is not None:
            text += f": expression[{self.expression_index}]"
        if self.source is not None:
            text += f": {self.source}"
        if self.position is not None:
            text += f" :{self.position}"
        return text


class EngineError(Exception):
    """Aggregate failure of an `ExpressionEngine.evaluate()` call."""

    kind: ErrorKind = ErrorKind.PARSING

    def __init__(self, records: list[ErrorRecord]) -> None:
        self.records = records
        super().__init__("\n".join(str(record) for record in records))


class ParsingError(EngineError):
    """One or more expressions failed identifier validation or evaluation."""

    kind = ErrorKind.PARSING


class CyclicDependencyError(EngineError):
    """The registered expressions contain one or more dependency cycles."""

    kind = ErrorKind.CYCLIC_DEPENDENCY

    def __init__(self, records: list[ErrorRecord], cycles: list[list[str]]) -> None:
        self.cycles = cycles
        super().__init__(records)


def cycle_record(cycle: list[str], expressions: Mapping[str, str]) -> ErrorRecord:
    """Describe a dependency cycle, rendered as `a={b+1}->b={a*2}->a`."""
    steps = [f"{identifier}={{{expressions.get(identifier, '')}}}" for identifier in cycle]
    return ErrorRecord(
        kind=ErrorKind.CYCLIC_DEPENDENCY,
        message="->".join([*steps, cycle[0]]),
        identifier=cycle[0],
    )
