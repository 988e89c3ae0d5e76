from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class FlockingConfig:
    max_speed: float = 2.5
    max_force: float = 0.4
    mouse_weight: float = 600.0
    sep_radius: float = 6.0
    ali_radius: float = 11.5
    coh_radius: float = 11.5
    sep_weight: float = 1.5
    ali_weight: float = 1.0
    coh_weight: float = 1.0


@dataclass
class SimulationConfig:
    width: float = 800.0
    height: float = 800.0
    boid_count: int = 1000
    seed: int = 42
    # Driver pacing only; integration is always one fixed step per tick.
    time_step: float = 1.0 / 60.0
    boid_size: float = 3.0
    debug: bool = False
    config_version: str = "v1"
    flocking: FlockingConfig = field(default_factory=FlockingConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        try:
            data = yaml.safe_load(Path(path).read_text())
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse {path}: {exc}") from exc
        return load_config(data or {})


_FLOCKING_FIELDS = {f.name for f in fields(FlockingConfig)}
_SIMULATION_FIELDS = {f.name for f in fields(SimulationConfig)} - {"flocking"}


def _number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ConfigError(f"{name} must be finite, got {value!r}")
    if number < 0.0:
        raise ConfigError(f"{name} must not be negative, got {value!r}")
    return number


def _unknown_keys(section: str, raw: dict, known: set[str]) -> None:
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown {section} keys: {', '.join(unknown)}")


def validate_config(config: SimulationConfig) -> SimulationConfig:
    for name in _FLOCKING_FIELDS:
        _number(f"flocking.{name}", getattr(config.flocking, name))
    for name in ("width", "height"):
        if _number(name, getattr(config, name)) <= 0.0:
            raise ConfigError(f"{name} must be positive, got {getattr(config, name)!r}")
    if isinstance(config.boid_count, bool) or not isinstance(config.boid_count, int) or config.boid_count < 0:
        raise ConfigError(f"boid_count must be a non-negative integer, got {config.boid_count!r}")
    if isinstance(config.seed, bool) or not isinstance(config.seed, int):
        raise ConfigError(f"seed must be an integer, got {config.seed!r}")
    if _number("time_step", config.time_step) <= 0.0:
        raise ConfigError(f"time_step must be positive, got {config.time_step!r}")
    _number("boid_size", config.boid_size)
    return config


def load_config(raw: dict) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping, got {type(raw).__name__}")
    flocking_raw = raw.get("flocking") or {}
    if not isinstance(flocking_raw, dict):
        raise ConfigError("flocking section must be a mapping")
    _unknown_keys("flocking", flocking_raw, _FLOCKING_FIELDS)
    _unknown_keys("simulation", {k: v for k, v in raw.items() if k != "flocking"}, _SIMULATION_FIELDS)

    flocking = FlockingConfig(**{k: _number(f"flocking.{k}", v) for k, v in flocking_raw.items()})
    sim_values = {k: v for k, v in raw.items() if k != "flocking"}
    for name in ("width", "height", "time_step", "boid_size"):
        if name in sim_values:
            sim_values[name] = _number(name, sim_values[name])
    return validate_config(SimulationConfig(flocking=flocking, **sim_values))


def config_to_dict(config: SimulationConfig) -> dict:
    return asdict(config)
