"""Tests for the expression tokenizer."""

import pytest

from exprgraph import Lexer, LexicalError, TokenKind, tokenize


def _kinds(source: str) -> list[TokenKind]:
    return [token.kind for token in tokenize(source)]


class TestIdentifiersAndKeywords:
    def test_identifier(self) -> None:
        tokens = tokenize("a1")
        assert tokens[0].kind is TokenKind.IDENTIFIER
        assert tokens[0].text == "a1"
        assert tokens[1].kind is TokenKind.EOF

    def test_identifier_letters_and_digits(self) -> None:
        assert [t.text for t in tokenize("abc123def")][:-1] == ["abc123def"]

    @pytest.mark.parametrize(
        "name",
        ["sin", "cos", "tan", "asin", "acos", "atan", "log", "exp", "log10", "exp10", "sqrt", "int"],
    )
    def test_function_names(self, name: str) -> None:
        token = tokenize(name)[0]
        assert token.kind is TokenKind.FUNCTION
        assert token.text == name

    def test_logical_keywords(self) -> None:
        assert _kinds("a and b or c") == [
            TokenKind.IDENTIFIER,
            TokenKind.AND,
            TokenKind.IDENTIFIER,
            TokenKind.OR,
            TokenKind.IDENTIFIER,
            TokenKind.EOF,
        ]

    def test_keyword_prefix_is_identifier(self) -> None:
        # "sine" is not "sin"
        assert tokenize("sine")[0].kind is TokenKind.IDENTIFIER

    def test_underscore_is_not_an_identifier_character(self) -> None:
        with pytest.raises(LexicalError):
            tokenize("a_b")


class TestNumbers:
    @pytest.mark.parametrize("text", ["0", "42", "3.14", "1.", ".5", "1e3", "2.5E-3", "7e+2", ".5e1"])
    def test_valid_numbers(self, text: str) -> None:
        tokens = tokenize(text)
        assert tokens[0].kind is TokenKind.NUMBER
        assert tokens[0].text == text
        assert tokens[1].kind is TokenKind.EOF

    def test_number_followed_by_identifier(self) -> None:
        tokens = tokenize("2 x")
        assert [t.kind for t in tokens] == [TokenKind.NUMBER, TokenKind.IDENTIFIER, TokenKind.EOF]

    def test_exponent_only_entered_on_e(self) -> None:
        # A number followed by another letter is not an exponent
        tokens = tokenize("2x")
        assert [(t.kind, t.text) for t in tokens[:2]] == [(TokenKind.NUMBER, "2"), (TokenKind.IDENTIFIER, "x")]

    @pytest.mark.parametrize("text", ["1e", "1e+", "2.5E-x", "3ea"])
    def test_malformed_exponent(self, text: str) -> None:
        with pytest.raises(LexicalError, match="Not a valid token"):
            tokenize(text)

    def test_lone_decimal_point(self) -> None:
        with pytest.raises(LexicalError) as exc_info:
            tokenize("1 + .x")
        assert exc_info.value.position == 4
        assert exc_info.value.token == ".x"


class TestOperators:
    def test_single_character_operators(self) -> None:
        assert _kinds("+ - * / % ^ ( ) ~")[:-1] == [
            TokenKind.PLUS,
            TokenKind.MINUS,
            TokenKind.MUL,
            TokenKind.DIV,
            TokenKind.MOD,
            TokenKind.POW,
            TokenKind.LPAREN,
            TokenKind.RPAREN,
            TokenKind.CONCAT,
        ]

    def test_comparison_operators(self) -> None:
        assert _kinds("== != < <= > >=")[:-1] == [
            TokenKind.EQUAL_TO,
            TokenKind.NOT_EQUAL,
            TokenKind.LESS_THAN,
            TokenKind.LESS_THAN_EQUAL,
            TokenKind.GREATER_THAN,
            TokenKind.GREATER_THAN_EQUAL,
        ]

    def test_operators_without_whitespace(self) -> None:
        assert [t.text for t in tokenize("a<=b")][:-1] == ["a", "<=", "b"]

    def test_single_equals_is_invalid(self) -> None:
        with pytest.raises(LexicalError, match="'='"):
            tokenize("pi=3")

    def test_single_bang_is_invalid(self) -> None:
        with pytest.raises(LexicalError, match="'!'"):
            tokenize("!a")

    @pytest.mark.parametrize("char", ["$", "#", "&", "[", ",", "é"])
    def test_unknown_character(self, char: str) -> None:
        with pytest.raises(LexicalError) as exc_info:
            tokenize(f"a {char} b")
        assert exc_info.value.position == 2


class TestLexerStream:
    def test_positions(self) -> None:
        tokens = tokenize("  a1 +  22")
        assert [t.position for t in tokens] == [2, 5, 8, 10]

    def test_empty_source(self) -> None:
        assert _kinds("") == [TokenKind.EOF]
        assert _kinds("   ") == [TokenKind.EOF]

    def test_advance_is_sticky_at_end(self) -> None:
        lexer = Lexer("a")
        assert lexer.advance().kind is TokenKind.EOF
        assert lexer.advance().kind is TokenKind.EOF

    def test_error_is_raised_lazily(self) -> None:
        lexer = Lexer("a + $")
        assert lexer.current.text == "a"
        assert lexer.advance().text == "+"
        with pytest.raises(LexicalError):
            lexer.advance()
