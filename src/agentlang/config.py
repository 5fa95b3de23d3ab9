"""Interpreter configuration.

This module provides Pydantic-based configuration loading from environment
variables and .env files for the interpreter, the step runner and the
command-line harness.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class InterpreterConfig(BaseSettings):
    """Configuration for running a simulation.

    Environment Variables:
        AGENTLANG_STEPS: Number of steps to evaluate after step 0 (default: 10)
        AGENTLANG_DELAY: Milliseconds between runner steps (default: 200)
        AGENTLANG_WIDTH: Width of the simulation bounds (default: 500)
        AGENTLANG_HEIGHT: Height of the simulation bounds (default: 500)
        AGENTLANG_SEED: Seed for random builtins (default: unseeded)
        AGENTLANG_NUMBER_PRECISION: Decimal digits kept on numbers (default: 2)

    Example:
        >>> config = InterpreterConfig()  # Loads from environment
        >>> config = InterpreterConfig(steps=100, seed=42)
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTLANG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    steps: int = Field(default=10, ge=0, description="Number of steps to evaluate")
    delay: int = Field(default=200, ge=0, description="Delay between runner steps (ms)")
    width: float = Field(default=500.0, gt=0, description="Width of the simulation bounds")
    height: float = Field(default=500.0, gt=0, description="Height of the simulation bounds")
    seed: int | None = Field(default=None, description="Seed for random builtins")
    number_precision: int | None = Field(
        default=2,
        ge=0,
        le=15,
        description="Decimal digits kept on numeric results (None disables rounding)",
    )


@lru_cache
def get_config() -> InterpreterConfig:
    """Get cached interpreter configuration singleton.

    To reload configuration, call get_config.cache_clear() first.

    Returns:
        InterpreterConfig instance with settings from environment.
    """
    config = InterpreterConfig()
    logger.debug("Loaded interpreter configuration: %s", config)
    return config
