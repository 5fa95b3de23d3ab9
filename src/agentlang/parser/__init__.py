"""Parser, validation, dependency resolution and formatting."""

from agentlang.parser.formatter import format_program, format_source
from agentlang.parser.parser import Parser
from agentlang.parser.topology import Topology, collect_dependencies
from agentlang.parser.validation import validate

__all__ = [
    "Parser",
    "Topology",
    "collect_dependencies",
    "format_program",
    "format_source",
    "validate",
]
