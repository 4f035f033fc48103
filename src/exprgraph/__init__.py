"""Evaluation of named numeric expressions with automatic dependency resolution."""

__all__ = [
    "RESERVED_CONSTANTS",
    "CyclicDependencyError",
    "DependencyGraph",
    "DocumentError",
    "EngineError",
    "EngineOptions",
    "ErrorKind",
    "ErrorRecord",
    "EvaluationResult",
    "EvaluationRuntimeError",
    "ExpressionDocument",
    "ExpressionEngine",
    "ExpressionError",
    "ExpressionSyntaxError",
    "Lexer",
    "LexicalError",
    "ParseContext",
    "ParsingError",
    "Token",
    "TokenKind",
    "build_engine",
    "evaluate_expression",
    "evaluate_in_context",
    "export_results",
    "extract_identifiers",
    "load_document",
    "tokenize",
]

from ._engine import EngineOptions, EvaluationResult, ExpressionEngine
from ._errors import (
    CyclicDependencyError,
    EngineError,
    ErrorKind,
    ErrorRecord,
    EvaluationRuntimeError,
    ExpressionError,
    ExpressionSyntaxError,
    LexicalError,
    ParsingError,
)
from ._graph import DependencyGraph
from ._io import DocumentError, ExpressionDocument, build_engine, export_results, load_document
from ._lexer import Lexer, Token, TokenKind, tokenize
from ._parser import RESERVED_CONSTANTS, ParseContext, evaluate_expression, evaluate_in_context, extract_identifiers
