"""Builtin function library.

Every builtin validates its arity and argument types before computing and
raises ``EvaluationError`` on mismatch. Pure builtins are called with the
argument list only; context readers (``step``, ``index``, ``agents``) also
receive the active ``EvaluationContext``.
"""

from __future__ import annotations

import math
import random
from collections.abc import Callable
from functools import partial
from typing import TYPE_CHECKING

from agentlang.errors import EvaluationError
from agentlang.model.values import (
    NULL,
    AgentsValue,
    AgentValue,
    BooleanValue,
    FunctionValue,
    IdentifierValue,
    LambdaValue,
    NumberValue,
    RuntimeAgent,
    RuntimeValue,
    ValueType,
)

if TYPE_CHECKING:
    from agentlang.runtime.context import EvaluationContext


def expect_argument_count(name: str, expected: int, args: list[RuntimeValue]) -> None:
    if len(args) != expected:
        raise EvaluationError(
            f"Function '{name}' expected {expected} arguments, {len(args)} provided"
        )


def expect_argument_type(name: str, value: RuntimeValue, expected: ValueType) -> None:
    if value.type is not expected:
        raise EvaluationError(
            f"Function '{name}' expected argument of type '{expected.value}', "
            f"'{value.type.value}' provided"
        )


def _numbers(name: str, args: list[RuntimeValue], count: int) -> list[float]:
    expect_argument_count(name, count, args)
    for arg in args:
        expect_argument_type(name, arg, ValueType.NUMBER)
    return [arg.value for arg in args]  # type: ignore[attr-defined]


def _lambda(name: str, args: list[RuntimeValue]) -> LambdaValue:
    expect_argument_count(name, 1, args)
    expect_argument_type(name, args[0], ValueType.LAMBDA)
    comprehension: LambdaValue = args[0]  # type: ignore[assignment]
    if len(comprehension.agents) != len(comprehension.results):
        raise EvaluationError(
            f"Number of agents does not equal the number of results in '{name}' function"
        )
    return comprehension


def _numeric_results(name: str, comprehension: LambdaValue) -> list[float]:
    for result in comprehension.results:
        if not isinstance(result, NumberValue):
            raise EvaluationError(
                f"Function '{name}' requires a lambda expression that returns numeric values"
            )
    return [result.value for result in comprehension.results]  # type: ignore[attr-defined]


def _out_of_domain(name: str, values: list[float]) -> EvaluationError:
    provided = ", ".join(f"{value:g}" for value in values)
    return EvaluationError(f"Function '{name}' is undefined for {provided}")


def _math(name: str, fn: Callable[..., float], arity: int = 1) -> Callable[[list[RuntimeValue]], RuntimeValue]:
    def call(args: list[RuntimeValue]) -> RuntimeValue:
        values = _numbers(name, args, arity)
        try:
            return NumberValue(float(fn(*values)))
        except (OverflowError, ValueError) as e:
            raise _out_of_domain(name, values) from e

    return call


# Math


def sqrt(args: list[RuntimeValue]) -> RuntimeValue:
    (value,) = _numbers("sqrt", args, 1)
    if value < 0:
        raise EvaluationError(f"Function 'sqrt' expected a non-negative number, {value:g} provided")
    return NumberValue(math.sqrt(value))


def round_half_up(args: list[RuntimeValue]) -> RuntimeValue:
    (value,) = _numbers("round", args, 1)
    if not math.isfinite(value):
        raise _out_of_domain("round", [value])
    return NumberValue(float(math.floor(value + 0.5)))


def pi(args: list[RuntimeValue]) -> RuntimeValue:
    expect_argument_count("pi", 0, args)
    return NumberValue(math.pi)


def dist(args: list[RuntimeValue]) -> RuntimeValue:
    x1, y1, x2, y2 = _numbers("dist", args, 4)
    return NumberValue(math.hypot(x1 - x2, y1 - y2))


# Randomness


def random_uniform(args: list[RuntimeValue], rng: random.Random) -> RuntimeValue:
    low, high = _numbers("random", args, 2)
    if low >= high:
        raise EvaluationError(
            "Function 'random' requires the first argument to be less than the second argument"
        )
    return NumberValue(rng.random() * (high - low) + low)


def choice(args: list[RuntimeValue], rng: random.Random) -> RuntimeValue:
    expect_argument_count("choice", 2, args)
    first, second = args
    if first.type is not second.type or first.type not in (ValueType.NUMBER, ValueType.BOOLEAN):
        raise EvaluationError("Function 'choice' requires arguments of type 'number' or 'boolean'")
    return first if rng.random() >= 0.5 else second


def prob(args: list[RuntimeValue], rng: random.Random) -> RuntimeValue:
    (probability,) = _numbers("prob", args, 1)
    if probability < 0 or probability > 1:
        raise EvaluationError(
            f"Function 'prob' expected a number between 0 and 1, {probability:g} provided"
        )
    return BooleanValue(rng.random() < probability)


# Population queries


def empty(args: list[RuntimeValue]) -> RuntimeValue:
    expect_argument_count("empty", 0, args)
    return AgentsValue(())


def count(args: list[RuntimeValue]) -> RuntimeValue:
    expect_argument_count("count", 1, args)
    expect_argument_type("count", args[0], ValueType.AGENTS)
    return NumberValue(float(len(args[0].value)))  # type: ignore[attr-defined]


def _coordinate(agent: RuntimeAgent, name: str) -> float:
    value = agent.variables.get(name)
    if value is None:
        raise EvaluationError(
            f"Property '{name}' in agent '{agent.id}' does not exist "
            "while using the 'find_by_coordinates' function"
        )
    if not isinstance(value, NumberValue):
        raise EvaluationError(
            f"Property '{name}' in agent '{agent.id}' is not of type number "
            "while using the 'find_by_coordinates' function"
        )
    return value.value


def find_by_coordinates(args: list[RuntimeValue]) -> RuntimeValue:
    expect_argument_count("find_by_coordinates", 3, args)
    expect_argument_type("find_by_coordinates", args[0], ValueType.AGENTS)
    expect_argument_type("find_by_coordinates", args[1], ValueType.NUMBER)
    expect_argument_type("find_by_coordinates", args[2], ValueType.NUMBER)
    x = args[1].value  # type: ignore[attr-defined]
    y = args[2].value  # type: ignore[attr-defined]

    for agent in args[0].value:  # type: ignore[attr-defined]
        if _coordinate(agent, "x") == x and _coordinate(agent, "y") == y:
            return AgentValue(agent)
    return NULL


# Aggregators over lambda results


def sum_(args: list[RuntimeValue]) -> RuntimeValue:
    comprehension = _lambda("sum", args)
    return NumberValue(float(sum(_numeric_results("sum", comprehension))))


def _extreme(name: str, pick: Callable[[list[float]], float], args: list[RuntimeValue]) -> RuntimeValue:
    comprehension = _lambda(name, args)
    results = _numeric_results(name, comprehension)
    if not results:
        return NULL
    target = pick(results)
    return AgentValue(comprehension.agents[results.index(target)])


def filter_(args: list[RuntimeValue]) -> RuntimeValue:
    comprehension = _lambda("filter", args)
    selected: list[RuntimeAgent] = []
    for agent, result in zip(comprehension.agents, comprehension.results):
        if not isinstance(result, BooleanValue):
            raise EvaluationError(
                "Function 'filter' requires a lambda expression that returns boolean values"
            )
        if result.value:
            selected.append(agent)
    return AgentsValue(tuple(selected))


# Context readers


def step(args: list[RuntimeValue], context: EvaluationContext) -> RuntimeValue:
    expect_argument_count("step", 0, args)
    return NumberValue(float(context.step))


def index(args: list[RuntimeValue], context: EvaluationContext) -> RuntimeValue:
    expect_argument_count("index", 0, args)
    return NumberValue(float(context.index))


def agents(args: list[RuntimeValue], context: EvaluationContext) -> RuntimeValue:
    """Agents of the given type in the read population, excluding the caller."""
    expect_argument_count("agents", 1, args)
    expect_argument_type("agents", args[0], ValueType.IDENTIFIER)
    identifier: IdentifierValue = args[0]  # type: ignore[assignment]
    return AgentsValue(
        tuple(
            agent
            for agent in context.population.values()
            if agent.identifier == identifier.value and agent.id != context.agent_id
        )
    )


def _constant(name: str, value: float) -> Callable[[list[RuntimeValue]], RuntimeValue]:
    def call(args: list[RuntimeValue]) -> RuntimeValue:
        expect_argument_count(name, 0, args)
        return NumberValue(value)

    return call


def create_builtins(
    rng: random.Random, width: float = 500.0, height: float = 500.0
) -> dict[str, FunctionValue]:
    """Build the global function table.

    Args:
        rng: Random source used by ``random``, ``choice`` and ``prob``.
        width: Value returned by ``width()``.
        height: Value returned by ``height()``.

    Returns:
        Mapping of function name to function value.
    """
    pure: dict[str, Callable[[list[RuntimeValue]], RuntimeValue]] = {
        "sqrt": sqrt,
        "abs": _math("abs", abs),
        "floor": _math("floor", math.floor),
        "ceil": _math("ceil", math.ceil),
        "round": round_half_up,
        "sin": _math("sin", math.sin),
        "cos": _math("cos", math.cos),
        "tan": _math("tan", math.tan),
        "atan": _math("atan", math.atan2, arity=2),
        "pi": pi,
        "dist": dist,
        "random": partial(random_uniform, rng=rng),
        "choice": partial(choice, rng=rng),
        "prob": partial(prob, rng=rng),
        "empty": empty,
        "count": count,
        "find_by_coordinates": find_by_coordinates,
        "sum": sum_,
        "min": partial(_extreme, "min", min),
        "max": partial(_extreme, "max", max),
        "filter": filter_,
        "width": _constant("width", width),
        "height": _constant("height", height),
    }
    context_readers = {"step": step, "index": index, "agents": agents}

    functions = {name: FunctionValue(name, call) for name, call in pure.items()}
    functions.update(
        (name, FunctionValue(name, call, uses_context=True)) for name, call in context_readers.items()
    )
    return functions
