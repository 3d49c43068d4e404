"""
Simulation configuration.

Dataclasses with defaults, optionally seeded from a JSON file and then
patched with overrides:

    cfg = build_config({"width": 80, "combat.tie_band": 3})

Combat constants are expressed in the same integer units as the genome base
stats, so changing a stat range usually means revisiting the thresholds too.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple
import json

from pixelwars.errors import ConfigError


Range = Tuple[int, int]

# Optional config file (JSON). If present, it seeds SimulationConfig before overrides.
CONFIG_PATH = Path(__file__).with_name("pixelwars_config.json")


@dataclass
class PopulationConfig:
    num_species: int = 16
    health_range: Range = (20, 100)
    strength_range: Range = (0, 100)
    desire_range: Range = (0, 100)
    frequency_range: Range = (0, 100)
    expectancy_range: Range = (50, 500)
    # Per-cell deviation, inclusive on both ends.
    modifier_range: Range = (-10, 10)


@dataclass
class CombatConfig:
    # desire + modifier + noise must exceed this to engage
    engagement_threshold: int = 50
    desire_noise: int = 25
    # frequency + modifier out of this many is the chance to act per pairing
    cadence_threshold: int = 100
    strength_noise: int = 10
    tie_band: int = 5
    rout_threshold: int = 60
    draw_damage: int = 2
    damage_scale: float = 1.0
    # death probability gained per tick lived beyond expectancy
    death_rate: float = 0.01


@dataclass
class DisplayConfig:
    saturation: float = 0.8
    lightness: float = 0.5


@dataclass
class SimulationConfig:
    width: int = 160
    height: int = 120
    seed: Optional[int] = None
    population: PopulationConfig = field(default_factory=PopulationConfig)
    combat: CombatConfig = field(default_factory=CombatConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    def validate(self) -> "SimulationConfig":
        if self.width <= 0 or self.height <= 0:
            raise ConfigError(f"Board dimensions must be positive, got {self.width}x{self.height}")
        validate_population(self.population)
        validate_combat(self.combat)
        for name in ("saturation", "lightness"):
            value = getattr(self.display, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"display.{name} must lie in [0, 1], got {value}")
        return self


_RANGE_FIELDS = (
    "health_range",
    "strength_range",
    "desire_range",
    "frequency_range",
    "expectancy_range",
    "modifier_range",
)


def validate_population(cfg: PopulationConfig) -> None:
    if cfg.num_species < 1:
        raise ConfigError(f"num_species must be >= 1, got {cfg.num_species}")
    for name in _RANGE_FIELDS:
        low, high = getattr(cfg, name)
        if low > high:
            raise ConfigError(f"Inverted range for {name}: {(low, high)}")
        if name != "modifier_range" and low < 0:
            raise ConfigError(f"Base stats are unsigned, {name} starts at {low}")
    # A freshly rolled cell must start alive.
    if cfg.health_range[0] + cfg.modifier_range[0] <= 0:
        raise ConfigError(
            f"health_range {cfg.health_range} too low for modifier_range {cfg.modifier_range}: "
            "a new cell could start with no health"
        )


def validate_combat(cfg: CombatConfig) -> None:
    for name in ("desire_noise", "strength_noise", "tie_band", "draw_damage"):
        if getattr(cfg, name) < 0:
            raise ConfigError(f"combat.{name} must be >= 0, got {getattr(cfg, name)}")
    if cfg.cadence_threshold < 1:
        raise ConfigError(f"combat.cadence_threshold must be >= 1, got {cfg.cadence_threshold}")
    if cfg.rout_threshold <= cfg.tie_band:
        raise ConfigError(
            f"combat.rout_threshold ({cfg.rout_threshold}) must exceed tie_band ({cfg.tie_band})"
        )
    if cfg.damage_scale <= 0:
        raise ConfigError(f"combat.damage_scale must be positive, got {cfg.damage_scale}")
    if not 0.0 <= cfg.death_rate <= 1.0:
        raise ConfigError(f"combat.death_rate must lie in [0, 1], got {cfg.death_rate}")


def _apply_section(target, data: Dict[str, object], prefix: str = "") -> None:
    known = {f.name for f in fields(target)}
    for key, value in data.items():
        if key not in known:
            raise ConfigError(f"Unknown config field: {prefix}{key}")
        current = getattr(target, key)
        if is_dataclass(current):
            if not isinstance(value, dict):
                raise ConfigError(f"Section {prefix}{key} must be an object, got {value!r}")
            _apply_section(current, value, prefix=f"{prefix}{key}.")
            continue
        if key.endswith("_range"):
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise ConfigError(f"Invalid range for {prefix}{key}: {value}")
            value = (int(value[0]), int(value[1]))
        setattr(target, key, value)


def load_config(path: str | Path) -> SimulationConfig:
    with open(Path(path), "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a JSON object")
    cfg = SimulationConfig()
    _apply_section(cfg, data)
    return cfg


def build_config(
    overrides: Optional[Dict[str, object]] = None, path: str | Path | None = None
) -> SimulationConfig:
    """Defaults, then the JSON file (``path`` or CONFIG_PATH if it exists), then overrides.

    Override keys are field names, dotted for nested sections
    (``"combat.rout_threshold"``).
    """
    if path is not None:
        cfg = load_config(path)
    elif CONFIG_PATH.exists():
        cfg = load_config(CONFIG_PATH)
    else:
        cfg = SimulationConfig()
    if overrides:
        for key, value in overrides.items():
            *sections, name = key.split(".")
            target = cfg
            for section in sections:
                target = getattr(target, section, None)
                if not is_dataclass(target):
                    raise ConfigError(f"Unknown config section: {key}")
            _apply_section(target, {name: value}, prefix=".".join(sections) + "." if sections else "")
    return cfg.validate()
