"""Symbolizer and lexer: source text to tokens."""

from agentlang.lexer.lexer import Lexer, tokenize
from agentlang.lexer.symbolizer import symbolize

__all__ = ["Lexer", "symbolize", "tokenize"]
