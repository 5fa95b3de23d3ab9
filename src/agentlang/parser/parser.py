"""Recursive-descent parser producing the program AST.

Expression precedence, lowest first:

    otherwise -> lambda (=> or ->) -> if/then/else -> and/or
    -> == != < <= > >= -> + - -> * / % -> member (.) -> call -> primary
"""

from __future__ import annotations

import logging

from agentlang.errors import ParserError
from agentlang.model.nodes import (
    BinaryExpression,
    BooleanLiteral,
    CallExpression,
    ConditionalExpression,
    DefineDeclaration,
    Expression,
    Identifier,
    LambdaExpression,
    LogicalExpression,
    MemberExpression,
    NumericLiteral,
    ObjectDeclaration,
    OtherwiseExpression,
    Program,
    Statement,
    UnaryExpression,
    VariableDeclaration,
    VariableType,
)
from agentlang.model.token import Position, Token, TokenType
from agentlang.parser.topology import Topology
from agentlang.parser.validation import validate

logger = logging.getLogger(__name__)

LOGICAL_OPERATORS = frozenset({"and", "or"})
ADDITIVE_OPERATORS = frozenset({"+", "-"})
MULTIPLICATIVE_OPERATORS = frozenset({"*", "/", "%"})
LAMBDA_ARROWS = frozenset({TokenType.LAMBDA_ARROW, TokenType.ARROW})


class Parser:
    """Parses a token list into a validated, dependency-sorted Program.

    Tokens are consumed from the front; the first syntax error aborts the
    parse with a positional ParserError.
    """

    def __init__(self, tokens: list[Token]) -> None:
        if not tokens or tokens[-1].type != TokenType.EOF:
            raise ParserError("Token stream must end with an EOF token")
        self._tokens = tokens
        self._index = 0

    def parse(self, resolve: bool = True) -> Program:
        """Parse the whole token stream.

        Args:
            resolve: Run validation and dependency sorting on the result.

        Returns:
            The program; when resolved, defines come first and each agent
            body is in dependency order.

        Raises:
            ParserError: On syntax, duplicate identifier or dependency errors.
        """
        self._index = 0
        body: list[Statement] = []

        while self._at().type != TokenType.EOF:
            body.append(self._parse_statement())

        program = Program(body=tuple(body), position=Position(1, 1))
        logger.debug("Parsed %d top-level declarations", len(body))

        if not resolve:
            return program

        validate(program)
        return Topology().sort(program)

    # Declarations

    def _parse_statement(self) -> Statement:
        token_type = self._at().type
        if token_type == TokenType.DEFINE:
            return self._parse_define_declaration()
        if token_type == TokenType.AGENT:
            return self._parse_object_declaration()
        raise ParserError(
            "Only agent and define declarations are allowed in program scope, "
            f"'{token_type.value}' provided",
            self._position(),
        )

    def _parse_define_declaration(self) -> DefineDeclaration:
        position = self._next().position

        identifier = self._expect(
            TokenType.IDENTIFIER,
            "Expected identifier after define keyword in define declaration",
        ).value
        self._expect(
            TokenType.ASSIGNMENT_OPERATOR,
            "Expected assignment symbol after identifier in define declaration",
        )
        value = self._parse_expression()
        self._expect(
            TokenType.SEMICOLON, "Expected a semicolon after value in define declaration"
        )

        return DefineDeclaration(identifier=identifier, value=value, position=position)

    def _parse_object_declaration(self) -> ObjectDeclaration:
        position = self._next().position

        identifier = self._expect(
            TokenType.IDENTIFIER,
            "Expected agent identifier after agent keyword in agent declaration",
        ).value

        count_token = self._at()
        if count_token.type == TokenType.NUMBER:
            count: Expression = self._parse_numeric_literal()
        elif count_token.type == TokenType.IDENTIFIER:
            count = self._parse_identifier()
        else:
            raise ParserError(
                "Expected number of agents after agent identifier in agent declaration",
                self._position(),
            )

        self._expect(
            TokenType.OPEN_BRACE,
            "Expected an open brace after number of agents in agent declaration",
        )

        body: list[VariableDeclaration] = []
        while self._at().type != TokenType.CLOSE_BRACE:
            if self._at().type in (TokenType.PROPERTY, TokenType.CONST):
                body.append(self._parse_variable_declaration())
            elif self._at().type == TokenType.EOF:
                raise ParserError(
                    "Expected a close brace after agent body in agent declaration",
                    self._position(),
                )
            else:
                raise ParserError(
                    "Only property and const declarations are allowed in agent body "
                    "in agent declaration",
                    self._position(),
                )
        self._next()

        return ObjectDeclaration(
            identifier=identifier, count=count, body=tuple(body), position=position
        )

    def _parse_variable_declaration(self) -> VariableDeclaration:
        keyword = self._next()
        variable_type = (
            VariableType.CONST if keyword.type == TokenType.CONST else VariableType.PROPERTY
        )

        identifier = self._expect(
            TokenType.IDENTIFIER,
            "Expected identifier after property type in property declaration",
        ).value

        default: Expression | None = None
        if self._at().type == TokenType.COLON:
            if variable_type == VariableType.CONST:
                raise ParserError("Const property cannot have a default value", self._position())
            self._next()
            default = self._parse_expression()

        self._expect(
            TokenType.ASSIGNMENT_OPERATOR,
            "Expected assignment symbol after identifier in property declaration",
        )
        value = self._parse_expression()
        self._expect(
            TokenType.SEMICOLON, "Expected a semicolon after value in property declaration"
        )

        return VariableDeclaration(
            variable_type=variable_type,
            identifier=identifier,
            value=value,
            default=default,
            position=keyword.position,
        )

    # Expressions

    def _parse_expression(self) -> Expression:
        return self._parse_otherwise_expression()

    def _parse_otherwise_expression(self) -> Expression:
        left = self._parse_lambda_expression()

        while self._at().type == TokenType.OTHERWISE:
            position = self._next().position
            right = self._parse_lambda_expression()
            left = OtherwiseExpression(left=left, right=right, position=position)

        return left

    def _parse_lambda_expression(self) -> Expression:
        base = self._parse_conditional_expression()

        if self._at().type not in LAMBDA_ARROWS:
            return base

        self._next()
        param = self._expect(
            TokenType.IDENTIFIER,
            "Expected a parameter identifier after lambda arrow in lambda expression",
        ).value

        if self._at().type not in LAMBDA_ARROWS:
            raise ParserError(
                "Expected a lambda arrow after parameter in lambda expression",
                self._position(),
            )
        position = self._next().position
        value = self._parse_conditional_expression()

        return LambdaExpression(base=base, param=param, value=value, position=position)

    def _parse_conditional_expression(self) -> Expression:
        if self._at().type != TokenType.IF:
            return self._parse_logical_expression()

        position = self._next().position
        condition = self._parse_expression()
        self._expect(
            TokenType.THEN, "Expected then keyword after condition in conditional expression"
        )
        consequent = self._parse_expression()
        self._expect(
            TokenType.ELSE, "Expected else keyword after consequent in conditional expression"
        )
        alternate = self._parse_expression()

        return ConditionalExpression(
            condition=condition, consequent=consequent, alternate=alternate, position=position
        )

    def _parse_logical_expression(self) -> Expression:
        left = self._parse_comparison_expression()

        while self._is_relational() and self._at().value in LOGICAL_OPERATORS:
            token = self._next()
            right = self._parse_comparison_expression()
            left = LogicalExpression(
                operator=token.value, left=left, right=right, position=token.position
            )

        return left

    def _parse_comparison_expression(self) -> Expression:
        left = self._parse_additive_expression()

        while self._is_relational() and self._at().value not in LOGICAL_OPERATORS:
            token = self._next()
            right = self._parse_additive_expression()
            left = BinaryExpression(
                operator=token.value, left=left, right=right, position=token.position
            )

        return left

    def _parse_additive_expression(self) -> Expression:
        left = self._parse_multiplicative_expression()

        while self._is_binary(ADDITIVE_OPERATORS):
            token = self._next()
            right = self._parse_multiplicative_expression()
            left = BinaryExpression(
                operator=token.value, left=left, right=right, position=token.position
            )

        return left

    def _parse_multiplicative_expression(self) -> Expression:
        left = self._parse_member_expression()

        while self._is_binary(MULTIPLICATIVE_OPERATORS):
            token = self._next()
            right = self._parse_member_expression()
            left = BinaryExpression(
                operator=token.value, left=left, right=right, position=token.position
            )

        return left

    def _parse_member_expression(self) -> Expression:
        caller = self._parse_call_expression()

        while self._at().type == TokenType.DOT:
            position = self._next().position
            value = self._parse_call_expression()
            caller = MemberExpression(caller=caller, value=value, position=position)

        return caller

    def _parse_call_expression(self) -> Expression:
        caller = self._parse_primary_expression()

        if self._at().type != TokenType.OPEN_PAREN:
            return caller

        self._next()
        args: list[Expression] = []

        if self._at().type != TokenType.CLOSE_PAREN:
            args.append(self._parse_expression())
            while self._at().type == TokenType.COMMA:
                self._next()
                args.append(self._parse_expression())

        self._expect(
            TokenType.CLOSE_PAREN,
            "Expected a closing parenthesis after function arguments in call expression",
        )

        return CallExpression(caller=caller, args=tuple(args), position=caller.position)

    def _parse_primary_expression(self) -> Expression:
        token = self._at()

        if token.type == TokenType.IDENTIFIER:
            return self._parse_identifier()
        if token.type == TokenType.NUMBER:
            return self._parse_numeric_literal()
        if token.type == TokenType.BOOLEAN:
            return self._parse_boolean_literal()
        if token.type == TokenType.BINARY_OPERATOR and token.value == "-":
            return self._parse_unary_expression((TokenType.NUMBER, TokenType.IDENTIFIER), "number")
        if token.type == TokenType.UNARY_OPERATOR:
            return self._parse_unary_expression(
                (TokenType.BOOLEAN, TokenType.IDENTIFIER), "boolean"
            )
        if token.type == TokenType.OPEN_PAREN:
            return self._parse_parenthesised_expression()

        raise ParserError(f"Unexpected token found during parsing: {token.value}", token.position)

    def _parse_identifier(self) -> Identifier:
        token = self._next()
        return Identifier(identifier=token.value, position=token.position)

    def _parse_numeric_literal(self) -> NumericLiteral:
        token = self._next()
        return NumericLiteral(value=float(token.value), position=token.position)

    def _parse_boolean_literal(self) -> BooleanLiteral:
        token = self._next()
        return BooleanLiteral(value=token.value == "true", position=token.position)

    def _parse_unary_expression(
        self, operand_types: tuple[TokenType, ...], kind: str
    ) -> UnaryExpression:
        operator = self._next()

        if self._at().type not in operand_types:
            raise ParserError(
                f"Unary expression with '{operator.value}' requires value of type "
                f"{kind} or identifier",
                operator.position,
            )

        value = self._parse_member_expression()
        return UnaryExpression(operator=operator.value, value=value, position=operator.position)

    def _parse_parenthesised_expression(self) -> Expression:
        self._next()
        value = self._parse_expression()
        self._expect(
            TokenType.CLOSE_PAREN, "Expected a closing parenthesis after an opening parenthesis"
        )
        return value

    # Token helpers

    def _at(self) -> Token:
        return self._tokens[self._index]

    def _next(self) -> Token:
        token = self._tokens[self._index]
        if token.type != TokenType.EOF:
            self._index += 1
        return token

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if self._at().type != token_type:
            raise ParserError(message, self._position())
        return self._next()

    def _position(self) -> Position:
        return self._at().position

    def _is_relational(self) -> bool:
        return self._at().type == TokenType.RELATIONAL_OPERATOR

    def _is_binary(self, operators: frozenset[str]) -> bool:
        token = self._at()
        return token.type == TokenType.BINARY_OPERATOR and token.value in operators
