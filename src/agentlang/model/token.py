"""Source positions, symbols and tokens produced by the front end."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Position:
    """1-based line/character location in the source text."""

    line: int
    character: int


@dataclass(frozen=True)
class Symbol:
    """A single source character tagged with its position."""

    value: str
    position: Position


class TokenType(Enum):
    """Kinds of tokens emitted by the lexer."""

    AGENT = "Agent"
    DEFINE = "Define"
    PROPERTY = "Property"
    CONST = "Const"

    IF = "If"
    THEN = "Then"
    ELSE = "Else"

    OTHERWISE = "Otherwise"

    IDENTIFIER = "Identifier"
    NUMBER = "Number"
    BOOLEAN = "Boolean"

    BINARY_OPERATOR = "BinaryOperator"  # + - * / %
    UNARY_OPERATOR = "UnaryOperator"  # !
    RELATIONAL_OPERATOR = "RelationalOperator"  # == != < <= > >= and or
    ASSIGNMENT_OPERATOR = "AssignmentOperator"  # =

    ARROW = "Arrow"  # ->
    LAMBDA_ARROW = "LambdaArrow"  # =>

    OPEN_PAREN = "OpenParen"
    CLOSE_PAREN = "CloseParen"
    OPEN_BRACE = "OpenBrace"
    CLOSE_BRACE = "CloseBrace"

    COMMA = "Comma"
    DOT = "Dot"
    COLON = "Colon"
    SEMICOLON = "Semicolon"

    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A lexical token with its literal text and starting position."""

    type: TokenType
    value: str
    position: Position


RESERVED_KEYWORDS: dict[str, TokenType] = {
    "agent": TokenType.AGENT,
    "define": TokenType.DEFINE,
    "property": TokenType.PROPERTY,
    "const": TokenType.CONST,
    "if": TokenType.IF,
    "then": TokenType.THEN,
    "else": TokenType.ELSE,
    "otherwise": TokenType.OTHERWISE,
    "and": TokenType.RELATIONAL_OPERATOR,
    "or": TokenType.RELATIONAL_OPERATOR,
    "true": TokenType.BOOLEAN,
    "false": TokenType.BOOLEAN,
}
