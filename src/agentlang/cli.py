"""Command-line interface for AgentLang."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import uvicorn

from agentlang import __version__
from agentlang.config import InterpreterConfig
from agentlang.engine.interpreter import Interpreter
from agentlang.errors import AgentLangError
from agentlang.logging_config import configure_logging
from agentlang.parser.formatter import format_source

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentlang",
        description="AgentLang - declarative agent-based simulation language",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Evaluate a program and write per-step output")
    run.add_argument("-i", "--input", required=True, type=Path, help="Program source file")
    run.add_argument("-o", "--output", type=Path, help="Output JSON file (default: stdout)")
    run.add_argument("--steps", type=int, help="Number of steps after step 0")
    run.add_argument("--width", type=float, help="Width of the simulation bounds")
    run.add_argument("--height", type=float, help="Height of the simulation bounds")
    run.add_argument("--seed", type=int, help="Seed for random builtins")
    run.add_argument("--compact", action="store_true", help="Write JSON without indentation")
    run.add_argument("--debug", action="store_true", help="Enable debug logging")

    fmt = commands.add_parser("format", help="Print a program in canonical layout")
    fmt.add_argument("-i", "--input", required=True, type=Path, help="Program source file")

    serve = commands.add_parser("serve", help="Start the HTTP API server")
    serve.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload for development")

    return parser


def _config_from(parsed: argparse.Namespace) -> InterpreterConfig:
    overrides = {
        name: getattr(parsed, name)
        for name in ("steps", "width", "height", "seed")
        if getattr(parsed, name) is not None
    }
    return InterpreterConfig(**overrides)


def _run(parsed: argparse.Namespace) -> int:
    config = _config_from(parsed)
    try:
        source_code = parsed.input.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Cannot read {parsed.input}: {e}", file=sys.stderr)
        return 1
    interpreter = Interpreter(source_code, config)

    steps = []
    for step in range(config.steps + 1):
        result = interpreter.output(step)
        if result.status.code != 0:
            print(result.status.message, file=sys.stderr)
            return 1
        steps.append(result.output.model_dump(mode="json"))

    text = json.dumps({"steps": steps}, indent=None if parsed.compact else 2)
    if parsed.output is None:
        print(text)
    else:
        parsed.output.write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %d steps to %s", len(steps), parsed.output)
    return 0


def _format(parsed: argparse.Namespace) -> int:
    try:
        source_code = parsed.input.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Cannot read {parsed.input}: {e}", file=sys.stderr)
        return 1
    try:
        print(format_source(source_code), end="")
    except AgentLangError as e:
        print(str(e), file=sys.stderr)
        return 1
    return 0


def _serve(parsed: argparse.Namespace) -> int:
    print(f"Starting AgentLang server at http://{parsed.host}:{parsed.port}")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "agentlang.server.app:app",
        host=parsed.host,
        port=parsed.port,
        reload=parsed.reload,
    )
    return 0


def main(args: list[str] | None = None) -> int:
    """Run the AgentLang command line.

    Args:
        args: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success, 1 on a program error).
    """
    parsed = _build_parser().parse_args(args)

    if parsed.command == "run":
        configure_logging(level=logging.DEBUG if parsed.debug else None)
        return _run(parsed)
    if parsed.command == "format":
        return _format(parsed)
    configure_logging()
    return _serve(parsed)


if __name__ == "__main__":
    sys.exit(main())
