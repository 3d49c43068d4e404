from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple
import random

from pixelwars.genome import Genome


@dataclass
class Modifiers:
    health: int = 0
    strength: int = 0
    desire: int = 0
    frequency: int = 0
    expectancy: int = 0

    def within(self, modifier_range: Tuple[int, int]) -> bool:
        low, high = modifier_range
        return all(
            low <= v <= high
            for v in (self.health, self.strength, self.desire, self.frequency, self.expectancy)
        )


def roll_modifiers(rng: random.Random, modifier_range: Tuple[int, int]) -> Modifiers:
    low, high = modifier_range
    return Modifiers(
        health=rng.randint(low, high),
        strength=rng.randint(low, high),
        desire=rng.randint(low, high),
        frequency=rng.randint(low, high),
        expectancy=rng.randint(low, high),
    )


@dataclass
class Cell:
    """One board slot: owning species plus its own deviations and live state."""

    genome_id: int
    modifiers: Modifiers
    current_health: int
    age: int = 0
    fought_this_tick: bool = False

    # Effective stats need the owning genome, which the cell only knows by id.
    def health(self, genome: Genome) -> int:
        return genome.base_health + self.modifiers.health

    def strength(self, genome: Genome) -> int:
        return genome.base_strength + self.modifiers.strength

    def desire(self, genome: Genome) -> int:
        return genome.base_desire + self.modifiers.desire

    def frequency(self, genome: Genome) -> int:
        return genome.base_frequency + self.modifiers.frequency

    def expectancy(self, genome: Genome) -> int:
        return genome.base_expectancy + self.modifiers.expectancy

    def reset(
        self, genome_id: int, genome: Genome, rng: random.Random, modifier_range: Tuple[int, int]
    ) -> None:
        """Overwrite ownership in place after a capture or an old-age death."""
        self.genome_id = genome_id
        self.modifiers = roll_modifiers(rng, modifier_range)
        self.current_health = self.health(genome)
        self.age = 0


def new_cell(
    genome_id: int, genome: Genome, rng: random.Random, modifier_range: Tuple[int, int]
) -> Cell:
    modifiers = roll_modifiers(rng, modifier_range)
    return Cell(
        genome_id=genome_id,
        modifiers=modifiers,
        current_health=genome.base_health + modifiers.health,
    )
