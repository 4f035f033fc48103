"""Loading expression documents from TOML and exporting results."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ._engine import EngineOptions, ExpressionEngine

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """The input document cannot be read or is not a valid expression document."""


class ExpressionDocument(BaseModel):
    """Values and expressions, as stored in an input TOML file.

    Example:
        ```toml
        [values]
        a1 = 5

        [expressions]
        a = "a1 + 1"
        ```

    """

    model_config = ConfigDict(extra="forbid")

    values: dict[str, float] = Field(default_factory=dict)
    expressions: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_unique_identifiers(self) -> ExpressionDocument:
        both = sorted(self.values.keys() & self.expressions.keys())
        if both:
            msg = f"identifiers defined both as value and expression: {', '.join(both)}"
            raise ValueError(msg)
        return self


def load_document(path: Path) -> ExpressionDocument:
    """Read and validate an expression document.

    Raises:
        DocumentError: If the file is missing, is not TOML, or has an invalid layout.

    """
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        msg = f"Input file not found: {path}"
        raise DocumentError(msg) from e
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise DocumentError(msg) from e

    try:
        document = ExpressionDocument.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid expression document {path}:\n{e}"
        raise DocumentError(msg) from e

    logger.debug(
        "Loaded %d value(s) and %d expression(s) from %s",
        len(document.values),
        len(document.expressions),
        path,
    )
    return document


def build_engine(document: ExpressionDocument, options: EngineOptions | None = None) -> ExpressionEngine:
    """Create an engine holding every value and expression of a document.

    Raises:
        ExpressionSyntaxError: If the document uses a reserved or malformed identifier.

    """
    engine = ExpressionEngine(options)
    for identifier, value in document.values.items():
        engine.insert_value(identifier, value)
    for identifier, source in document.expressions.items():
        engine.insert_expression(identifier, source)
    return engine


def export_results(results: Mapping[str, float], path: Path) -> None:
    """Write computed results to a TOML file under a `[results]` table."""
    data = {"results": dict(sorted(results.items()))}
    with path.open("wb") as f:
        tomli_w.dump(data, f)
    logger.debug("Wrote %d result(s) to %s", len(results), path)
