"""Lexer: converts a symbol stream into a token list terminated by EOF."""

from __future__ import annotations

import logging

from agentlang.errors import LexerError
from agentlang.lexer.symbolizer import symbolize
from agentlang.model.token import RESERVED_KEYWORDS, Position, Symbol, Token, TokenType

logger = logging.getLogger(__name__)

SINGLE_CHARACTER_TOKENS: dict[str, TokenType] = {
    "(": TokenType.OPEN_PAREN,
    ")": TokenType.CLOSE_PAREN,
    "{": TokenType.OPEN_BRACE,
    "}": TokenType.CLOSE_BRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    ":": TokenType.COLON,
    ";": TokenType.SEMICOLON,
    "+": TokenType.BINARY_OPERATOR,
    "*": TokenType.BINARY_OPERATOR,
    "/": TokenType.BINARY_OPERATOR,
    "%": TokenType.BINARY_OPERATOR,
}

# Operators that may absorb a following symbol: first char -> {second: type}
TWO_CHARACTER_TOKENS: dict[str, dict[str, TokenType]] = {
    "-": {">": TokenType.ARROW},
    "=": {"=": TokenType.RELATIONAL_OPERATOR, ">": TokenType.LAMBDA_ARROW},
    "<": {"=": TokenType.RELATIONAL_OPERATOR},
    ">": {"=": TokenType.RELATIONAL_OPERATOR},
    "!": {"=": TokenType.RELATIONAL_OPERATOR},
}

# Token type of the first char when it stands alone
LONE_OPERATOR_TOKENS: dict[str, TokenType] = {
    "-": TokenType.BINARY_OPERATOR,
    "=": TokenType.ASSIGNMENT_OPERATOR,
    "<": TokenType.RELATIONAL_OPERATOR,
    ">": TokenType.RELATIONAL_OPERATOR,
    "!": TokenType.UNARY_OPERATOR,
}

COMMENT_DELIMITER = "#"
SKIPPABLE = frozenset(" \t\r\n")
DIGITS = frozenset("0123456789")


class Lexer:
    """Single-pass tokenizer over a position-tagged symbol stream.

    Example:
        >>> tokens = Lexer(symbolize("agent person 10 {}")).tokenize()
        >>> [t.type.value for t in tokens]
        ['Agent', 'Identifier', 'Number', 'OpenBrace', 'CloseBrace', 'EOF']
    """

    def __init__(self, symbols: list[Symbol]) -> None:
        self._symbols = symbols
        self._index = 0
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Tokenize the whole symbol stream.

        Returns:
            Tokens in source order, ending with an EOF token.

        Raises:
            LexerError: On malformed numbers, unterminated comments or
                unrecognized characters.
        """
        self._index = 0
        self._tokens = []

        while self._has_next():
            symbol = self._peek()
            value = symbol.value

            if value in SINGLE_CHARACTER_TOKENS:
                self._advance()
                self._emit(SINGLE_CHARACTER_TOKENS[value], value, symbol.position)
            elif value in TWO_CHARACTER_TOKENS:
                self._tokenize_operator()
            elif value == COMMENT_DELIMITER:
                self._skip_comment()
            elif value in DIGITS:
                self._tokenize_number()
            elif value.isalpha():
                self._tokenize_identifier()
            elif value in SKIPPABLE:
                self._advance()
            else:
                raise LexerError(
                    f"Unrecognized character found in source: {value}", symbol.position
                )

        self._emit_eof()
        logger.debug("Tokenized source into %d tokens", len(self._tokens))
        return self._tokens

    def _tokenize_operator(self) -> None:
        first = self._advance()
        followers = TWO_CHARACTER_TOKENS[first.value]

        if self._has_next() and self._peek().value in followers:
            second = self._advance()
            self._emit(followers[second.value], first.value + second.value, first.position)
        else:
            self._emit(LONE_OPERATOR_TOKENS[first.value], first.value, first.position)

    def _tokenize_number(self) -> None:
        position = self._peek().position
        number = ""
        found_decimal_point = False

        while self._has_next() and (self._peek().value in DIGITS or self._peek().value == "."):
            if self._peek().value == ".":
                if found_decimal_point:
                    raise LexerError(
                        "Number cannot contain more than one decimal point", position
                    )
                found_decimal_point = True
            number += self._advance().value

        self._emit(TokenType.NUMBER, number, position)

    def _tokenize_identifier(self) -> None:
        position = self._peek().position
        identifier = self._advance().value

        while self._has_next() and (self._peek().value.isalpha() or self._peek().value == "_"):
            identifier += self._advance().value

        token_type = RESERVED_KEYWORDS.get(identifier, TokenType.IDENTIFIER)
        self._emit(token_type, identifier, position)

    def _skip_comment(self) -> None:
        opening = self._advance()

        while self._has_next():
            if self._advance().value == COMMENT_DELIMITER:
                return

        raise LexerError("Unterminated comment", opening.position)

    def _emit_eof(self) -> None:
        if not self._tokens:
            self._emit(TokenType.EOF, "EOF", Position(1, 1))
            return

        last = self._tokens[-1]
        end = Position(last.position.line, last.position.character + len(last.value))
        self._emit(TokenType.EOF, "EOF", end)

    def _emit(self, token_type: TokenType, value: str, position: Position) -> None:
        self._tokens.append(Token(token_type, value, position))

    def _has_next(self) -> bool:
        return self._index < len(self._symbols)

    def _peek(self) -> Symbol:
        return self._symbols[self._index]

    def _advance(self) -> Symbol:
        symbol = self._symbols[self._index]
        self._index += 1
        return symbol


def tokenize(source_code: str) -> list[Token]:
    """Symbolize and tokenize source text in one call."""
    return Lexer(symbolize(source_code)).tokenize()
