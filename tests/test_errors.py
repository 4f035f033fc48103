"""Tests for error types and error records."""

from exprgraph import (
    CyclicDependencyError,
    EngineError,
    ErrorKind,
    ErrorRecord,
    EvaluationRuntimeError,
    ExpressionError,
    LexicalError,
    ParsingError,
)
from exprgraph._errors import cycle_record


class TestErrorKind:
    def test_labels(self) -> None:
        assert ErrorKind.LEXICAL.label == "Lexical"
        assert ErrorKind.RUNTIME.label == "Runtime"
        assert ErrorKind.CYCLIC_DEPENDENCY.label == "Cyclic dependency"

    def test_exception_kinds(self) -> None:
        assert LexicalError("x").kind is ErrorKind.LEXICAL
        assert EvaluationRuntimeError("x").kind is ErrorKind.RUNTIME
        assert ExpressionError("x").kind is ErrorKind.SYNTAX


class TestErrorRecord:
    def test_from_exception(self) -> None:
        exc = EvaluationRuntimeError("attempt to divide by zero", position=2, token="/")
        record = ErrorRecord.from_exception(exc, identifier="a", expression_index=3, source="1 / 0")
        assert record.kind is ErrorKind.RUNTIME
        assert record.message == "attempt to divide by zero"
        assert record.position == 2
        assert record.token == "/"

    def test_str_full(self) -> None:
        record = ErrorRecord(
            kind=ErrorKind.SYNTAX,
            message="'b' not found",
            identifier="a",
            expression_index=0,
            source="b + 1",
            position=0,
        )
        assert str(record) == "Syntax error: 'b' not found: expression[0]: b + 1 :0"

    def test_str_message_only(self) -> None:
        record = ErrorRecord(kind=ErrorKind.CYCLIC_DEPENDENCY, message="a={a}->a")
        assert str(record) == "Cyclic dependency error: a={a}->a"


class TestEngineErrors:
    def test_message_joins_records(self) -> None:
        records = [
            ErrorRecord(kind=ErrorKind.RUNTIME, message="first"),
            ErrorRecord(kind=ErrorKind.RUNTIME, message="second"),
        ]
        error = ParsingError(records)
        assert str(error) == "Runtime error: first\nRuntime error: second"
        assert error.records == records
        assert error.kind is ErrorKind.PARSING

    def test_cyclic_dependency_error(self) -> None:
        record = cycle_record(["a", "b"], {"a": "b + 1", "b": "a"})
        error = CyclicDependencyError([record], [["a", "b"]])
        assert isinstance(error, EngineError)
        assert error.cycles == [["a", "b"]]
        assert error.kind is ErrorKind.CYCLIC_DEPENDENCY

    def test_cycle_record_message(self) -> None:
        record = cycle_record(["a", "b", "c"], {"a": "b", "b": "c", "c": "a"})
        assert record.message == "a={b}->b={c}->c={a}->a"
        assert record.identifier == "a"
