"""Expression engine: registration, dependency analysis and evaluation."""

import logging
from dataclasses import dataclass, field

from ._errors import (
    CyclicDependencyError,
    ErrorKind,
    ErrorRecord,
    ExpressionError,
    ExpressionSyntaxError,
    LexicalError,
    ParsingError,
    cycle_record,
)
from ._graph import DependencyGraph
from ._lexer import Token, TokenKind, tokenize
from ._parser import (
    DEFAULT_MAX_DEPTH,
    RESERVED_CONSTANTS,
    ParseContext,
    evaluate_in_context,
    extract_identifiers,
    iter_identifier_tokens,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EngineOptions:
    """Tuning knobs of an `ExpressionEngine`.

    Attributes:
        max_depth: Maximum nesting of parentheses and function calls in one expression.

    """

    max_depth: int = DEFAULT_MAX_DEPTH


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Result of evaluating every registered expression.

    Either `values` holds a result for every expression and `errors` is
    empty, or `values` is empty and `errors` lists every problem found.

    Attributes:
        values: Mapping from expression identifier to computed value.
        errors: Problems found during validation or evaluation.
        cycles: Dependency cycles found. When non-empty, `errors` describes them.

    """

    values: dict[str, float] = field(default_factory=dict)
    errors: list[ErrorRecord] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if evaluation completed without errors."""
        return len(self.errors) == 0

    def get_value(self, identifier: str) -> float:
        """Get a computed value by identifier.

        Raises:
            KeyError: If no value exists for the identifier.

        """
        return self.values[identifier]

    def raise_for_errors(self) -> None:
        """Raise the aggregate error matching the problems found, if any.

        Raises:
            CyclicDependencyError: If dependency cycles were found.
            ParsingError: If any expression failed validation or evaluation.

        """
        if self.cycles:
            raise CyclicDependencyError(self.errors, self.cycles)
        if self.errors:
            raise ParsingError(self.errors)


def _check_identifier(identifier: str) -> None:
    """Reject names that can never be referenced from an expression."""
    if identifier in RESERVED_CONSTANTS:
        msg = f"attempt to modify the constant {identifier}"
        raise ExpressionSyntaxError(msg, position=0, token=identifier)
    try:
        tokens = tokenize(identifier)
    except LexicalError as e:
        msg = f"'{identifier}' is not a valid identifier"
        raise ExpressionSyntaxError(msg, position=e.position, token=e.token) from e
    if tokens[0].kind is not TokenKind.IDENTIFIER or tokens[0].text != identifier:
        msg = f"'{identifier}' is not a valid identifier"
        raise ExpressionSyntaxError(msg, position=0, token=identifier)


class ExpressionEngine:
    """Evaluates a set of named expressions that may reference each other.

    Values and expressions are registered in any order. Every call to
    `evaluate()` extracts the identifiers each expression references,
    builds a fresh dependency graph, rejects cycles and evaluates the
    expressions dependencies first, making each result available to the
    expressions evaluated after it.

    An identifier names either a value or an expression; registering it
    again, as either kind, replaces the previous registration.

    Example:
        >>> engine = ExpressionEngine()
        >>> engine.insert_value("a1", 5)
        >>> engine.insert_expression("a", "a1 + 1")
        >>> engine.evaluate()
        {'a': 6.0}

    """

    def __init__(self, options: EngineOptions | None = None) -> None:
        self._options = options or EngineOptions()
        self._expressions: dict[str, str] = {}
        self._values: dict[str, float] = {}
        self._results: dict[str, float] = {}

    @property
    def options(self) -> EngineOptions:
        return self._options

    @property
    def expressions(self) -> dict[str, str]:
        """Registered expression sources, by identifier."""
        return dict(self._expressions)

    @property
    def values(self) -> dict[str, float]:
        """Registered values, by identifier."""
        return dict(self._values)

    def insert_value(self, identifier: str, value: float) -> None:
        """Register or overwrite a value.

        Raises:
            ExpressionSyntaxError: If the identifier is reserved or malformed.

        """
        _check_identifier(identifier)
        self._expressions.pop(identifier, None)
        self._values[identifier] = float(value)

    def insert_expression(self, identifier: str, source: str) -> None:
        """Register or overwrite an expression.

        The source is not inspected until `evaluate()`.

        Raises:
            ExpressionSyntaxError: If the identifier is reserved or malformed.

        """
        _check_identifier(identifier)
        self._values.pop(identifier, None)
        self._expressions[identifier] = source

    def dependency_graph(self) -> tuple[DependencyGraph[str], list[ErrorRecord]]:
        """Build the dependency graph of the registered expressions.

        Vertices are the expression identifiers in sorted order. An edge
        `(a, b)` means expression `a` references expression `b`. References
        to values and reserved constants are leaves and add no edge.

        Returns:
            The graph and the problems found while extracting references: invalid
            tokens and identifiers that are neither expressions nor values.

        """
        identifiers = sorted(self._expressions)
        graph = DependencyGraph(identifiers)
        errors: list[ErrorRecord] = []

        for index, identifier in enumerate(identifiers):
            source = self._expressions[identifier]
            references: list[Token] = []
            try:
                for token in iter_identifier_tokens(source):
                    references.append(token)  # noqa: PERF402 - keep references found before a lexical error
            except LexicalError as e:
                errors.append(
                    ErrorRecord.from_exception(e, identifier=identifier, expression_index=index, source=source),
                )

            for token in references:
                if token.text in self._expressions:
                    graph.add_edge(identifier, token.text)
                elif token.text not in self._values and token.text not in RESERVED_CONSTANTS:
                    errors.append(
                        ErrorRecord(
                            kind=ErrorKind.SYNTAX,
                            message=f"'{token.text}' not found",
                            identifier=identifier,
                            expression_index=index,
                            source=source,
                            position=token.position,
                            token=token.text,
                        ),
                    )

        return graph, errors

    def validate(self) -> tuple[DependencyGraph[str], EvaluationResult]:
        """Check references and dependency cycles without evaluating anything.

        Unresolved references are reported first; the cycle check only runs
        when every reference resolves.

        Returns:
            The dependency graph and a result holding the problems found, with no values.

        """
        graph, errors = self.dependency_graph()
        if errors:
            logger.debug("Reference validation failed with %d error(s)", len(errors))
            return graph, EvaluationResult(errors=errors)

        cycles = graph.find_cycles()
        if cycles:
            logger.debug("Found %d dependency cycle(s)", len(cycles))
            return graph, EvaluationResult(
                errors=[cycle_record(cycle, self._expressions) for cycle in cycles],
                cycles=cycles,
            )

        return graph, EvaluationResult()

    def try_evaluate(self) -> EvaluationResult:
        """Evaluate every registered expression without raising on failure.

        Validation stops early: unresolved references abort before the cycle
        check, and cycles abort before evaluation. During evaluation every
        expression is attempted and all failures are collected.

        Returns:
            EvaluationResult with either every value or every error.

        """
        graph, validation = self.validate()
        if not validation.success:
            return validation

        errors: list[ErrorRecord] = []
        eval_order = graph.topological_order()
        logger.debug("Evaluating %d expressions in order: %s", len(eval_order), eval_order)

        symbols: dict[str, float] = {**self._values, **RESERVED_CONSTANTS}
        context = ParseContext(symbols=symbols, max_depth=self._options.max_depth)
        values: dict[str, float] = {}

        for index, identifier in enumerate(eval_order):
            source = self._expressions[identifier]
            try:
                value = evaluate_in_context(source, context)
            except ExpressionError as e:
                logger.debug("Failed to evaluate %s = %r: %s", identifier, source, e)
                errors.append(
                    ErrorRecord.from_exception(e, identifier=identifier, expression_index=index, source=source),
                )
                continue
            logger.debug("  %s = %r", identifier, value)
            symbols[identifier] = value
            values[identifier] = value

        if errors:
            return EvaluationResult(errors=errors)
        return EvaluationResult(values=values)

    def evaluate(self) -> dict[str, float]:
        """Evaluate every registered expression.

        Returns:
            Mapping from expression identifier to its value.

        Raises:
            ParsingError: If a reference is unresolved, a token is invalid, or any
                expression fails to evaluate. Lists every problem found.
            CyclicDependencyError: If expressions depend on each other in a loop.
                Lists every cycle found.

        """
        self._results = {}
        result = self.try_evaluate()
        result.raise_for_errors()
        self._results = dict(result.values)
        return dict(result.values)

    def get_result(self, identifier: str) -> float:
        """Get a value computed by the last successful `evaluate()` call.

        Raises:
            KeyError: If the identifier has no computed value.

        """
        try:
            return self._results[identifier]
        except KeyError:
            msg = f"No result for '{identifier}'; it is not an expression or evaluate() has not succeeded"
            raise KeyError(msg) from None

    def get_id_count(self) -> dict[str, int]:
        """Count how many times expressions reference each registered value.

        Every registered value appears in the result, possibly with zero.
        Expressions that contain an invalid token are skipped.
        """
        counts = dict.fromkeys(sorted(self._values), 0)
        for identifier, source in self._expressions.items():
            try:
                references = extract_identifiers(source)
            except LexicalError as e:
                logger.warning("Skipping expression '%s' when counting references: %s", identifier, e)
                continue
            for reference in references:
                if reference in counts:
                    counts[reference] += 1
        return counts

    def get_unique_ids(self) -> list[str]:
        """Get the value identifiers referenced by at least one expression, sorted."""
        return [identifier for identifier, count in self.get_id_count().items() if count > 0]
