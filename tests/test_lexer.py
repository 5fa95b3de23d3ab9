"""Tests for the symbolizer and lexer."""

from __future__ import annotations

import pytest

from agentlang.errors import LexerError
from agentlang.lexer import Lexer, symbolize, tokenize
from agentlang.model.token import Position, TokenType


def types(source: str) -> list[TokenType]:
    return [token.type for token in tokenize(source)]


def values(source: str) -> list[str]:
    return [token.value for token in tokenize(source)]


class TestSymbolizer:
    """Tests for symbol positions."""

    def test_positions_are_one_based(self) -> None:
        """First character sits at line 1, character 1."""
        symbols = symbolize("ab")
        assert symbols[0].position == Position(1, 1)
        assert symbols[1].position == Position(1, 2)

    def test_newline_resets_character(self) -> None:
        """Character counter resets after a newline."""
        symbols = symbolize("a\nb")
        assert symbols[1].value == "\n"
        assert symbols[1].position == Position(1, 2)
        assert symbols[2].position == Position(2, 1)

    def test_empty_source(self) -> None:
        """Empty source has no symbols."""
        assert symbolize("") == []


class TestTokens:
    """Tests for token classification."""

    def test_empty_source_is_only_eof(self) -> None:
        """Empty input yields a single EOF token at 1:1."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF
        assert tokens[0].value == "EOF"
        assert tokens[0].position == Position(1, 1)

    def test_whitespace_only_is_only_eof(self) -> None:
        """Whitespace is skipped entirely."""
        assert types(" \t\r\n ") == [TokenType.EOF]

    def test_agent_declaration(self) -> None:
        """A minimal agent declaration tokenizes in order."""
        assert types("agent person 10 {}") == [
            TokenType.AGENT,
            TokenType.IDENTIFIER,
            TokenType.NUMBER,
            TokenType.OPEN_BRACE,
            TokenType.CLOSE_BRACE,
            TokenType.EOF,
        ]

    def test_keywords(self) -> None:
        """Reserved words map to their keyword types."""
        assert types("define property const if then else otherwise")[:-1] == [
            TokenType.DEFINE,
            TokenType.PROPERTY,
            TokenType.CONST,
            TokenType.IF,
            TokenType.THEN,
            TokenType.ELSE,
            TokenType.OTHERWISE,
        ]

    def test_booleans(self) -> None:
        """true and false are boolean literals."""
        assert types("true false")[:-1] == [TokenType.BOOLEAN, TokenType.BOOLEAN]

    def test_and_or_are_relational(self) -> None:
        """Logical keywords are relational operator tokens."""
        tokens = tokenize("a and b or c")
        assert tokens[1].type == TokenType.RELATIONAL_OPERATOR
        assert tokens[1].value == "and"
        assert tokens[3].type == TokenType.RELATIONAL_OPERATOR
        assert tokens[3].value == "or"

    def test_identifier_with_underscore(self) -> None:
        """Identifiers may contain underscores after the first letter."""
        tokens = tokenize("find_by_coordinates")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "find_by_coordinates"

    def test_keyword_prefix_is_identifier(self) -> None:
        """A word that merely starts with a keyword is an identifier."""
        tokens = tokenize("agents")
        assert tokens[0].type == TokenType.IDENTIFIER


class TestOperators:
    """Tests for one- and two-character operators."""

    @pytest.mark.parametrize("operator", ["==", "!=", "<=", ">=", "<", ">"])
    def test_relational(self, operator: str) -> None:
        """Comparison operators are relational tokens."""
        tokens = tokenize(f"a {operator} b")
        assert tokens[1].type == TokenType.RELATIONAL_OPERATOR
        assert tokens[1].value == operator

    @pytest.mark.parametrize("operator", ["+", "-", "*", "/", "%"])
    def test_binary(self, operator: str) -> None:
        """Arithmetic operators are binary tokens."""
        tokens = tokenize(f"a {operator} b")
        assert tokens[1].type == TokenType.BINARY_OPERATOR
        assert tokens[1].value == operator

    def test_assignment(self) -> None:
        """A lone '=' is assignment."""
        assert tokenize("x = 1")[1].type == TokenType.ASSIGNMENT_OPERATOR

    def test_not(self) -> None:
        """A lone '!' is the unary not operator."""
        assert tokenize("!x")[0].type == TokenType.UNARY_OPERATOR

    def test_arrows(self) -> None:
        """'=>' and '->' are lambda arrow tokens."""
        assert types("=> ->")[:-1] == [TokenType.LAMBDA_ARROW, TokenType.ARROW]

    def test_operator_without_spaces(self) -> None:
        """Two-character operators are recognized without surrounding spaces."""
        assert values("a<=b") == ["a", "<=", "b", "EOF"]

    def test_punctuation(self) -> None:
        """Punctuation maps to dedicated token types."""
        assert types("( ) { } , . : ;")[:-1] == [
            TokenType.OPEN_PAREN,
            TokenType.CLOSE_PAREN,
            TokenType.OPEN_BRACE,
            TokenType.CLOSE_BRACE,
            TokenType.COMMA,
            TokenType.DOT,
            TokenType.COLON,
            TokenType.SEMICOLON,
        ]


class TestNumbers:
    """Tests for numeric literals."""

    def test_integer(self) -> None:
        """Digit runs become number tokens."""
        tokens = tokenize("42")
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == "42"

    def test_decimal(self) -> None:
        """One decimal point is allowed."""
        assert tokenize("3.14")[0].value == "3.14"

    def test_two_decimal_points(self) -> None:
        """A second decimal point is a lexical error."""
        with pytest.raises(LexerError, match="more than one decimal point"):
            tokenize("1.2.3")


class TestComments:
    """Tests for '#' delimited comments."""

    def test_comment_is_skipped(self) -> None:
        """Text between two '#' produces no tokens."""
        assert values("a # ignored ; { } # b") == ["a", "b", "EOF"]

    def test_comment_spans_lines(self) -> None:
        """Comments may run across newlines."""
        assert values("#\nline one\nline two\n# x") == ["x", "EOF"]

    def test_unterminated_comment(self) -> None:
        """A comment without closing '#' is an error at its opening."""
        with pytest.raises(LexerError, match="Unterminated comment") as info:
            tokenize("a # never closed")
        assert info.value.position == Position(1, 3)


class TestPositions:
    """Tests for token positions."""

    def test_token_positions(self) -> None:
        """Tokens carry the position of their first character."""
        tokens = tokenize("agent a 1 {\n  const x = 1;\n}")
        const = tokens[4]
        assert const.type == TokenType.CONST
        assert const.position == Position(2, 3)

    def test_eof_after_last_token(self) -> None:
        """EOF sits right after the last real token."""
        tokens = tokenize("abc")
        assert tokens[-1].position == Position(1, 4)

    def test_eof_ignores_trailing_whitespace(self) -> None:
        """Trailing whitespace does not move EOF."""
        tokens = tokenize("x;   \n\n")
        assert tokens[-1].position == Position(1, 3)


class TestErrors:
    """Tests for unrecognized input."""

    @pytest.mark.parametrize("character", ["@", "$", "&", "|", "?"])
    def test_unrecognized_character(self, character: str) -> None:
        """Unknown characters raise with their position."""
        with pytest.raises(LexerError, match="Unrecognized character") as info:
            tokenize(f"a {character}")
        assert info.value.position == Position(1, 3)

    def test_error_string_form(self) -> None:
        """Errors render kind, position and message."""
        with pytest.raises(LexerError) as info:
            tokenize("@")
        assert str(info.value) == (
            "Lexer Error (line 1, character 1): Unrecognized character found in source: @"
        )

    def test_lexer_is_reusable(self) -> None:
        """Calling tokenize twice gives the same tokens."""
        lexer = Lexer(symbolize("a + b"))
        assert lexer.tokenize() == lexer.tokenize()
