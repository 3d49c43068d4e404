"""
Species definitions.

A Genome is an immutable set of baseline stats plus a display hue. All the
genomes of a run live in one Population, and cells refer to them by their
integer index in it, so the board never holds references into a table that
could change under it.
"""
from __future__ import annotations

from dataclasses import dataclass
from itertools import islice, product
from string import ascii_uppercase
from typing import Iterator, List, Optional, Sequence
import logging
import random

from pixelwars.config import PopulationConfig, validate_population
from pixelwars.errors import ConfigError

logger = logging.getLogger(__name__)

# Two-letter codes AA..ZZ
MAX_SPECIES = len(ascii_uppercase) ** 2


@dataclass(frozen=True)
class Genome:
    name: str
    hue: float  # degrees in [0, 360), display only
    base_health: int
    base_strength: int
    base_desire: int
    base_frequency: int
    base_expectancy: int


def species_names() -> Iterator[str]:
    for a, b in product(ascii_uppercase, repeat=2):
        yield a + b


class Population:
    """Ordered, read-only arena of genomes indexed by genome id."""

    def __init__(self, genomes: Sequence[Genome]):
        self._genomes = tuple(genomes)
        names = [g.name for g in self._genomes]
        if len(set(names)) != len(names):
            raise ConfigError(f"Species names must be unique, got {names}")
        self._by_name = {name: ix for ix, name in enumerate(names)}

    def __len__(self) -> int:
        return len(self._genomes)

    def __iter__(self) -> Iterator[Genome]:
        return iter(self._genomes)

    def __getitem__(self, genome_id: int) -> Genome:
        return self._genomes[genome_id]

    def __repr__(self) -> str:
        return f"Population({', '.join(g.name for g in self._genomes)})"

    def index_of(self, name: str) -> int:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"No species named {name!r}") from None

    def random_id(self, rng: random.Random) -> int:
        return rng.randrange(len(self._genomes))

    def describe(self) -> List[str]:
        lines = [f"{'name':>4} {'hue':>6} {'health':>6} {'str':>4} {'desire':>6} {'freq':>4} {'expect':>6}"]
        for g in self._genomes:
            lines.append(
                f"{g.name:>4} {g.hue:6.1f} {g.base_health:6d} {g.base_strength:4d} "
                f"{g.base_desire:6d} {g.base_frequency:4d} {g.base_expectancy:6d}"
            )
        return lines


def _roll(rng: random.Random, bounds) -> int:
    low, high = bounds
    return rng.randint(low, high)


def generate_population(
    n: int, config: Optional[PopulationConfig] = None, rng: Optional[random.Random] = None
) -> Population:
    """Create ``n`` species named AA, AB, ... with random baselines.

    Hues are spaced evenly around the colour wheel from a random start so
    neighbouring species ids are as far apart visually as possible.
    """
    if n < 1:
        raise ConfigError(f"Population size must be >= 1, got {n}")
    if n > MAX_SPECIES:
        raise ConfigError(f"Cannot name {n} species, the naming scheme holds {MAX_SPECIES}")
    cfg = config or PopulationConfig()
    validate_population(cfg)
    rng = rng or random.Random()

    start = rng.uniform(0.0, 360.0)
    spacing = 360.0 / n
    genomes = []
    for i, name in enumerate(islice(species_names(), n)):
        genomes.append(
            Genome(
                name=name,
                hue=(start + i * spacing) % 360.0,
                base_health=_roll(rng, cfg.health_range),
                base_strength=_roll(rng, cfg.strength_range),
                base_desire=_roll(rng, cfg.desire_range),
                base_frequency=_roll(rng, cfg.frequency_range),
                base_expectancy=_roll(rng, cfg.expectancy_range),
            )
        )
    logger.info("Generated %d species (%s..%s)", n, genomes[0].name, genomes[-1].name)
    return Population(genomes)
