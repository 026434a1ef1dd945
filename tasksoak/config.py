"""
Soak harness configuration.

Settings are resolved in three layers, later layers winning:

1. An environment profile class (``Config`` and its subclasses), picked by
   name or by the ``SOAK_ENV`` environment variable.  Profile attributes
   read their own environment variables, 12-factor style.
2. An optional YAML file.  Keys may use the documented camelCase names
   (``baseUrl``, ``rounds``, ``stepsPerRound``, ``actionProbabilities``,
   ``logPath``) or the snake_case field names of :class:`SoakSettings`.
3. Explicit keyword overrides (the CLI flags).

Key Concepts Demonstrated:
- Class-based configuration with inheritance for DRY defaults
- Environment-variable overrides
- YAML configuration files parsed with ``yaml.safe_load``
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from tasksoak.actions import ActionKind, ActionWeights, SelectionMode
from tasksoak.errors import ConfigurationError

LOG_RESET_CHOICES = ("run", "round")

# camelCase keys of the documented configuration surface
FILE_KEY_ALIASES = {
    "baseUrl": "base_url",
    "stepsPerRound": "steps_per_round",
    "actionProbabilities": "action_probabilities",
    "logPath": "log_path",
    "logReset": "log_reset",
    "selectionMode": "selection_mode",
    "requestTimeout": "request_timeout",
    "roundTimeout": "round_timeout",
    "tolerateMissingDelete": "tolerate_missing_delete",
    "checkReadStability": "check_read_stability",
    "strictReset": "strict_reset",
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _env_optional_float(name: str, default: str) -> float | None:
    value = os.environ.get(name, default)
    return None if value.lower() in ("", "none") else float(value)


class Config:
    """
    Base profile: full-length soak defaults.

    Every attribute can be overridden by the environment variable of the
    same name prefixed with ``SOAK_``.
    """

    BASE_URL: str = os.environ.get("SOAK_BASE_URL", "http://localhost:3000/api/tasks")
    SCENARIO: str = os.environ.get("SOAK_SCENARIO", "completion")
    ROUNDS: int = int(os.environ.get("SOAK_ROUNDS", "20"))
    STEPS_PER_ROUND: int = int(os.environ.get("SOAK_STEPS_PER_ROUND", "1000"))
    LOG_PATH: str | None = os.environ.get("SOAK_LOG_PATH", "soak_log.txt") or None
    LOG_RESET: str = os.environ.get("SOAK_LOG_RESET", "round")
    # Per-request ceiling; the round budget alone cannot interrupt a hung request.
    REQUEST_TIMEOUT: float | None = _env_optional_float("SOAK_REQUEST_TIMEOUT", "30")
    ROUND_TIMEOUT: float | None = _env_optional_float("SOAK_ROUND_TIMEOUT", "1800")


class DevelopmentConfig(Config):
    """Short runs against a locally started target."""

    ROUNDS: int = int(os.environ.get("SOAK_ROUNDS", "2"))
    STEPS_PER_ROUND: int = int(os.environ.get("SOAK_STEPS_PER_ROUND", "100"))


class TestingConfig(Config):
    """
    Test-suite profile.

    Tiny rounds, no log file and aggressive timeouts keep harness tests fast.
    """

    BASE_URL: str = os.environ.get("TEST_SOAK_BASE_URL", "http://tasks.test/api/tasks")
    ROUNDS: int = 1
    STEPS_PER_ROUND: int = 25
    LOG_PATH: str | None = None
    REQUEST_TIMEOUT: float | None = 5.0
    ROUND_TIMEOUT: float | None = 60.0


class SoakConfig(Config):
    """Full-length soak profile (20 rounds x 1000 steps)."""


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "soak": SoakConfig,
    "default": Config,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Return the profile class for the given environment name.

    Args:
        env: ``"development"``, ``"testing"`` or ``"soak"``.  When *None*,
            ``SOAK_ENV`` is consulted; unknown names fall back to ``Config``.
    """
    if env is None:
        env = os.environ.get("SOAK_ENV", "default")
    return config.get(env, config["default"])


@dataclass(frozen=True)
class SoakSettings:
    """Resolved, validated settings of one soak run."""

    base_url: str
    scenario: str = "completion"
    rounds: int = 20
    steps_per_round: int = 1000
    action_probabilities: Mapping[str, float] | None = None
    log_path: Path | None = None
    log_reset: str = "round"
    selection_mode: str | None = None
    request_timeout: float | None = 30.0
    round_timeout: float | None = 1800.0
    seed: int | None = None
    tolerate_missing_delete: bool = False
    check_read_stability: bool = False
    strict_reset: bool = False

    def validate(self) -> SoakSettings:
        """
        Check value types and ranges and return ``self``.

        Raises:
            ConfigurationError: On the first invalid setting.
        """
        if not isinstance(self.base_url, str) or not self.base_url:
            raise ConfigurationError("base_url must be a non-empty string")
        for name in ("rounds", "steps_per_round"):
            value = getattr(self, name)
            if not _is_int(value):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if self.seed is not None and not _is_int(self.seed):
            raise ConfigurationError(f"seed must be an integer, got {self.seed!r}")
        for name in ("request_timeout", "round_timeout"):
            value = getattr(self, name)
            if value is not None and not _is_number(value):
                raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}")
        for name in ("tolerate_missing_delete", "check_read_stability", "strict_reset"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be true or false, got {value!r}")
        if self.rounds < 1:
            raise ConfigurationError(f"rounds must be >= 1, got {self.rounds}")
        if self.steps_per_round < 1:
            raise ConfigurationError(f"steps_per_round must be >= 1, got {self.steps_per_round}")
        if self.log_reset not in LOG_RESET_CHOICES:
            raise ConfigurationError(
                f"log_reset must be one of {LOG_RESET_CHOICES}, got {self.log_reset!r}"
            )
        if self.selection_mode is not None:
            try:
                SelectionMode(self.selection_mode)
            except ValueError as exc:
                raise ConfigurationError(
                    f"selection_mode must be one of {[m.value for m in SelectionMode]}"
                ) from exc
        for name in ("request_timeout", "round_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        if self.action_probabilities is not None:
            self.weights()
        return self

    def weights(self) -> ActionWeights | None:
        """Configured action weights, or ``None`` to use the scenario's."""
        if self.action_probabilities is None:
            return None
        return ActionWeights.from_mapping(self.action_probabilities)

    def replace(self, **changes: Any) -> SoakSettings:
        return dataclasses.replace(self, **changes).validate()


def _profile_values(profile: type[Config]) -> dict[str, Any]:
    log_path = profile.LOG_PATH
    return {
        "base_url": profile.BASE_URL,
        "scenario": profile.SCENARIO,
        "rounds": profile.ROUNDS,
        "steps_per_round": profile.STEPS_PER_ROUND,
        "log_path": Path(log_path) if log_path else None,
        "log_reset": profile.LOG_RESET,
        "request_timeout": profile.REQUEST_TIMEOUT,
        "round_timeout": profile.ROUND_TIMEOUT,
    }


def _load_file(path: Path) -> dict[str, Any]:
    """
    Read settings from a YAML file and normalise key names.

    Raises:
        ConfigurationError: If the file is not a mapping or has unknown keys.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read settings file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")

    known = {f.name for f in dataclasses.fields(SoakSettings)}
    values: dict[str, Any] = {}
    for key, value in data.items():
        name = FILE_KEY_ALIASES.get(key, key)
        if name not in known:
            raise ConfigurationError(f"Unknown setting '{key}' in {path}")
        values[name] = value

    if values.get("log_path") is not None:
        values["log_path"] = Path(values["log_path"])
    probabilities = values.get("action_probabilities")
    if probabilities is not None and not isinstance(probabilities, dict):
        raise ConfigurationError(
            f"actionProbabilities must map action names ({[k.value for k in ActionKind]}) to weights"
        )
    return values


def load_settings(
    path: str | Path | None = None,
    env: str | None = None,
    **overrides: Any,
) -> SoakSettings:
    """
    Resolve settings from profile, optional YAML file and overrides.

    Overrides whose value is ``None`` are ignored so CLI flags that were not
    given do not clobber file values.

    Returns:
        Validated :class:`SoakSettings`.
    """
    values = _profile_values(get_config(env))
    if path is not None:
        values.update(_load_file(Path(path)))
    values.update({key: value for key, value in overrides.items() if value is not None})
    if values.get("log_path") is not None:
        values["log_path"] = Path(values["log_path"])
    try:
        settings = SoakSettings(**values)
    except TypeError as exc:
        raise ConfigurationError(str(exc)) from exc
    return settings.validate()
