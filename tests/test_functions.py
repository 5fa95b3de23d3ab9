"""Tests for the builtin function library and scope chain."""

from __future__ import annotations

import math
import random

import pytest

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
)
from agentlang.runtime import Environment, EvaluationContext, create_builtins


@pytest.fixture
def builtins() -> dict[str, FunctionValue]:
    """Builtins with a seeded random source."""
    return create_builtins(random.Random(3), width=640.0, height=480.0)


def call(builtins: dict[str, FunctionValue], name: str, *args):
    return builtins[name].call(list(args))


def n(value: float) -> NumberValue:
    return NumberValue(value)


def agent(agent_id: str, **variables: float) -> RuntimeAgent:
    identifier = agent_id.rsplit("-", 1)[0]
    return RuntimeAgent(agent_id, identifier, {k: NumberValue(v) for k, v in variables.items()})


class TestEnvironment:
    """Tests for scope declaration and lookup."""

    def test_declare_and_lookup(self) -> None:
        """Declared values can be looked up."""
        env = Environment()
        env.declare("x", n(1))
        assert env.lookup("x") == n(1)

    def test_lookup_walks_parents(self) -> None:
        """Child scopes see parent bindings."""
        parent = Environment()
        parent.declare("x", n(1))
        child = Environment(parent)
        assert child.lookup("x") == n(1)
        assert "x" in child

    def test_redeclare_same_scope(self) -> None:
        """Redeclaring in one scope is an error."""
        env = Environment()
        env.declare("x", n(1))
        with pytest.raises(EvaluationError, match="already declared"):
            env.declare("x", n(2))

    def test_shadowing_in_child(self) -> None:
        """A child scope may shadow a parent binding."""
        parent = Environment()
        parent.declare("x", n(1))
        child = Environment(parent)
        child.declare("x", n(2))
        assert child.lookup("x") == n(2)
        assert parent.lookup("x") == n(1)

    def test_assign_updates_declaring_scope(self) -> None:
        """Assignment writes to the nearest scope that declares the name."""
        parent = Environment()
        parent.declare("x", n(1))
        child = Environment(parent)
        child.assign("x", n(5))
        assert parent.lookup("x") == n(5)

    def test_missing(self) -> None:
        """Lookup and assignment of unknown names fail."""
        env = Environment()
        assert env.resolve("x") is None
        with pytest.raises(EvaluationError, match="does not exist"):
            env.lookup("x")
        with pytest.raises(EvaluationError, match="does not exist"):
            env.assign("x", n(1))


class TestMath:
    """Tests for numeric builtins."""

    @pytest.mark.parametrize(
        ("name", "args", "expected"),
        [
            ("sqrt", (16,), 4),
            ("abs", (-3,), 3),
            ("floor", (2.7,), 2),
            ("ceil", (2.1,), 3),
            ("round", (2.5,), 3),
            ("round", (-2.5,), -2),
            ("sin", (0,), 0),
            ("cos", (0,), 1),
            ("tan", (0,), 0),
            ("atan", (1, 1), math.pi / 4),
            ("dist", (0, 0, 3, 4), 5),
        ],
    )
    def test_values(self, builtins, name: str, args: tuple, expected: float) -> None:
        """Numeric builtins compute the expected value."""
        result = call(builtins, name, *(n(a) for a in args))
        assert result.value == pytest.approx(expected)

    def test_pi(self, builtins) -> None:
        """pi() takes no arguments."""
        assert call(builtins, "pi").value == pytest.approx(math.pi)

    def test_bounds(self, builtins) -> None:
        """width() and height() return the configured bounds."""
        assert call(builtins, "width") == n(640)
        assert call(builtins, "height") == n(480)

    def test_sqrt_negative(self, builtins) -> None:
        """The square root of a negative number is an error."""
        with pytest.raises(EvaluationError, match="non-negative"):
            call(builtins, "sqrt", n(-1))

    @pytest.mark.parametrize("name", ["floor", "ceil", "round", "sin", "cos", "tan"])
    def test_infinity_rejected(self, builtins, name: str) -> None:
        """Builtins undefined at infinity raise a runtime error."""
        with pytest.raises(EvaluationError, match=f"Function '{name}' is undefined for inf"):
            call(builtins, name, n(math.inf))

    def test_nan_rejected(self, builtins) -> None:
        """floor of NaN is a runtime error."""
        with pytest.raises(EvaluationError, match="undefined for nan"):
            call(builtins, "floor", n(math.nan))

    def test_arity(self, builtins) -> None:
        """Wrong argument counts are reported."""
        with pytest.raises(EvaluationError, match="Function 'dist' expected 4 arguments, 2 provided"):
            call(builtins, "dist", n(1), n(2))

    def test_argument_type(self, builtins) -> None:
        """Wrong argument types are reported."""
        with pytest.raises(
            EvaluationError,
            match="Function 'abs' expected argument of type 'number', 'boolean' provided",
        ):
            call(builtins, "abs", BooleanValue(True))


class TestRandom:
    """Tests for randomness builtins."""

    def test_random_in_range(self, builtins) -> None:
        """random(min, max) stays within [min, max)."""
        for _ in range(100):
            assert 2 <= call(builtins, "random", n(2), n(5)).value < 5

    def test_random_requires_ordered_bounds(self, builtins) -> None:
        """min must be below max."""
        with pytest.raises(EvaluationError, match="less than"):
            call(builtins, "random", n(5), n(5))

    def test_choice_numbers(self, builtins) -> None:
        """choice picks one of two numbers."""
        picks = {call(builtins, "choice", n(1), n(2)).value for _ in range(50)}
        assert picks == {1, 2}

    def test_choice_booleans(self, builtins) -> None:
        """choice accepts two booleans."""
        result = call(builtins, "choice", BooleanValue(True), BooleanValue(False))
        assert isinstance(result, BooleanValue)

    def test_choice_mixed_rejected(self, builtins) -> None:
        """choice needs two values of one kind."""
        with pytest.raises(EvaluationError, match="'number' or 'boolean'"):
            call(builtins, "choice", n(1), BooleanValue(True))

    def test_prob_extremes(self, builtins) -> None:
        """prob(0) is never true and prob(1) always is."""
        assert all(call(builtins, "prob", n(0)) == BooleanValue(False) for _ in range(20))
        assert all(call(builtins, "prob", n(1)) == BooleanValue(True) for _ in range(20))

    def test_prob_range(self, builtins) -> None:
        """prob rejects values outside [0, 1]."""
        with pytest.raises(EvaluationError, match="between 0 and 1"):
            call(builtins, "prob", n(1.5))

    def test_seeded(self) -> None:
        """The same seed gives the same sequence."""
        first = create_builtins(random.Random(11))
        second = create_builtins(random.Random(11))
        assert [call(first, "random", n(0), n(1)) for _ in range(5)] == [
            call(second, "random", n(0), n(1)) for _ in range(5)
        ]


class TestPopulationQueries:
    """Tests for agent list builtins."""

    def test_empty_and_count(self, builtins) -> None:
        """empty() is an agents list of length zero."""
        assert call(builtins, "count", call(builtins, "empty")) == n(0)

    def test_count(self, builtins) -> None:
        """count() is the list length."""
        agents = AgentsValue((agent("a-0"), agent("a-1")))
        assert call(builtins, "count", agents) == n(2)

    def test_find_by_coordinates(self, builtins) -> None:
        """The first agent at the given point is returned."""
        first, second = agent("a-0", x=1, y=2), agent("a-1", x=3, y=4)
        result = call(builtins, "find_by_coordinates", AgentsValue((first, second)), n(3), n(4))
        assert result == AgentValue(second)

    def test_find_by_coordinates_miss(self, builtins) -> None:
        """No match yields null."""
        agents = AgentsValue((agent("a-0", x=1, y=2),))
        assert call(builtins, "find_by_coordinates", agents, n(0), n(0)) is NULL

    def test_find_by_coordinates_needs_coordinates(self, builtins) -> None:
        """Agents without x/y are an error."""
        agents = AgentsValue((agent("a-0", x=1),))
        with pytest.raises(EvaluationError, match="Property 'y' in agent 'a-0' does not exist"):
            call(builtins, "find_by_coordinates", agents, n(1), n(0))


class TestAggregators:
    """Tests for builtins consuming comprehension results."""

    def comprehension(self, *results) -> LambdaValue:
        agents = tuple(agent(f"a-{i}") for i in range(len(results)))
        return LambdaValue(agents, tuple(results))

    def test_sum(self, builtins) -> None:
        """sum() adds numeric results."""
        assert call(builtins, "sum", self.comprehension(n(1), n(2.5))) == n(3.5)

    def test_sum_empty(self, builtins) -> None:
        """The sum of nothing is zero."""
        assert call(builtins, "sum", self.comprehension()) == n(0)

    def test_min_max_first_extreme(self, builtins) -> None:
        """min/max return the first agent holding the extreme result."""
        values = self.comprehension(n(3), n(1), n(5), n(1), n(5))
        assert call(builtins, "min", values).value.id == "a-1"
        assert call(builtins, "max", values).value.id == "a-2"

    def test_min_empty(self, builtins) -> None:
        """min/max of nothing is null."""
        assert call(builtins, "min", self.comprehension()) is NULL
        assert call(builtins, "max", self.comprehension()) is NULL

    def test_filter(self, builtins) -> None:
        """filter() keeps agents whose result is true."""
        values = self.comprehension(BooleanValue(True), BooleanValue(False), BooleanValue(True))
        result = call(builtins, "filter", values)
        assert [a.id for a in result.value] == ["a-0", "a-2"]

    def test_filter_requires_booleans(self, builtins) -> None:
        """filter() rejects numeric results."""
        with pytest.raises(EvaluationError, match="boolean values"):
            call(builtins, "filter", self.comprehension(n(1)))

    def test_numeric_aggregators_require_numbers(self, builtins) -> None:
        """sum/min/max reject boolean results."""
        for name in ("sum", "min", "max"):
            with pytest.raises(EvaluationError, match="numeric values"):
                call(builtins, name, self.comprehension(BooleanValue(True)))

    def test_mismatched_lengths(self, builtins) -> None:
        """Agent and result counts must agree."""
        broken = LambdaValue((agent("a-0"),), ())
        with pytest.raises(EvaluationError, match="Number of agents does not equal"):
            call(builtins, "sum", broken)

    def test_requires_lambda(self, builtins) -> None:
        """Aggregators need a comprehension argument."""
        with pytest.raises(EvaluationError, match="type 'lambda', 'agents' provided"):
            call(builtins, "sum", AgentsValue(()))


class TestContextReaders:
    """Tests for step(), index() and agents()."""

    @pytest.fixture
    def context(self) -> EvaluationContext:
        population = {
            a.id: a for a in (agent("a-0"), agent("a-1"), agent("b-0"), agent("a-2"))
        }
        return EvaluationContext(
            step=4, index=1, agent_id="a-1", population=population, scope=Environment()
        )

    def test_flags(self, builtins) -> None:
        """Only the context readers take the evaluation context."""
        readers = {name for name, fn in builtins.items() if fn.uses_context}
        assert readers == {"step", "index", "agents"}

    def test_step_and_index(self, builtins, context) -> None:
        """step() and index() read the context."""
        assert builtins["step"].call([], context) == n(4)
        assert builtins["index"].call([], context) == n(1)

    def test_agents_filters_type_and_self(self, builtins, context) -> None:
        """agents() returns other agents of the requested type."""
        result = builtins["agents"].call([IdentifierValue("a")], context)
        assert [a.id for a in result.value] == ["a-0", "a-2"]

    def test_agents_requires_identifier(self, builtins, context) -> None:
        """agents() takes an agent type token."""
        with pytest.raises(EvaluationError, match="type 'identifier'"):
            builtins["agents"].call([n(1)], context)
