"""Tests for loading expression documents and exporting results."""

import tomllib
from pathlib import Path

import pytest

from exprgraph import (
    DocumentError,
    EngineOptions,
    ExpressionDocument,
    ExpressionSyntaxError,
    build_engine,
    export_results,
    load_document,
)

# --- Fixtures ---


@pytest.fixture
def document_path(tmp_path: Path) -> Path:
    path = tmp_path / "input.toml"
    path.write_text(
        """
[values]
a1 = 5
rate = 0.25

[expressions]
a2 = "a1 + 1"
a3 = "a2 * 2"
""",
    )
    return path


# --- load_document() Tests ---


class TestLoadDocument:
    def test_values_and_expressions(self, document_path: Path) -> None:
        """Should read both tables, converting integer values to float."""
        document = load_document(document_path)

        assert document.values == {"a1": 5.0, "rate": 0.25}
        assert document.expressions == {"a2": "a1 + 1", "a3": "a2 * 2"}

    def test_empty_document(self, tmp_path: Path) -> None:
        """Should accept a file with no tables."""
        path = tmp_path / "empty.toml"
        path.write_text("")

        document = load_document(path)

        assert document == ExpressionDocument()

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should raise DocumentError when the file does not exist."""
        with pytest.raises(DocumentError, match="Input file not found"):
            load_document(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Should raise DocumentError on malformed TOML."""
        path = tmp_path / "bad.toml"
        path.write_text("[values\n")

        with pytest.raises(DocumentError, match="Invalid TOML"):
            load_document(path)

    def test_unknown_table(self, tmp_path: Path) -> None:
        """Should reject tables other than values and expressions."""
        path = tmp_path / "extra.toml"
        path.write_text('[constants]\nx = 1\n')

        with pytest.raises(DocumentError, match="Invalid expression document"):
            load_document(path)

    def test_non_numeric_value(self, tmp_path: Path) -> None:
        """Should reject a value that is not a number."""
        path = tmp_path / "bad_value.toml"
        path.write_text('[values]\nx = "five"\n')

        with pytest.raises(DocumentError):
            load_document(path)

    def test_identifier_in_both_tables(self, tmp_path: Path) -> None:
        """Should reject an identifier defined as value and expression."""
        path = tmp_path / "both.toml"
        path.write_text('[values]\nx = 1\n\n[expressions]\nx = "2"\n')

        with pytest.raises(DocumentError, match="both as value and expression: x"):
            load_document(path)


# --- build_engine() Tests ---


class TestBuildEngine:
    def test_engine_evaluates_document(self, document_path: Path) -> None:
        engine = build_engine(load_document(document_path))

        assert engine.evaluate() == {"a2": 6.0, "a3": 12.0}

    def test_options_forwarded(self, document_path: Path) -> None:
        options = EngineOptions(max_depth=7)

        engine = build_engine(load_document(document_path), options)

        assert engine.options is options

    def test_reserved_identifier(self) -> None:
        document = ExpressionDocument(values={"pi": 3.0})

        with pytest.raises(ExpressionSyntaxError, match="constant pi"):
            build_engine(document)


# --- export_results() Tests ---


class TestExportResults:
    def test_writes_sorted_results_table(self, tmp_path: Path) -> None:
        path = tmp_path / "out.toml"

        export_results({"b": 2.0, "a": 1.5}, path)

        with path.open("rb") as f:
            data = tomllib.load(f)
        assert data == {"results": {"a": 1.5, "b": 2.0}}
        assert list(data["results"]) == ["a", "b"]

    def test_empty_results(self, tmp_path: Path) -> None:
        path = tmp_path / "out.toml"

        export_results({}, path)

        with path.open("rb") as f:
            assert tomllib.load(f) == {"results": {}}


class TestExampleDocument:
    def test_pricing_example(self) -> None:
        path = Path(__file__).parents[1] / "examples" / "pricing.toml"

        results = build_engine(load_document(path)).evaluate()

        assert results["gross"] == 500.0
        assert results["discount"] == pytest.approx(25.0)
        assert results["total"] == pytest.approx(570.0)
        assert results["bigorder"] == 0.0
        assert results["storecode"] == 314.0
