"""Language model: tokens, AST nodes, runtime values and output records."""

from agentlang.model.nodes import Program, VariableType
from agentlang.model.output import ExitStatus, InterpreterOutput, Output, OutputAgent, OutputVariable
from agentlang.model.token import Position, Symbol, Token, TokenType
from agentlang.model.values import RuntimeAgent, RuntimeValue, ValueType

__all__ = [
    "ExitStatus",
    "InterpreterOutput",
    "Output",
    "OutputAgent",
    "OutputVariable",
    "Position",
    "Program",
    "RuntimeAgent",
    "RuntimeValue",
    "Symbol",
    "Token",
    "TokenType",
    "ValueType",
    "VariableType",
]
