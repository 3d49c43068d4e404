"""
Combat between neighbouring cells of different species.

Per attacker and tick:
1) roll the frequency gate once; a failed roll means no fight this tick,
2) walk the enemy neighbours in canonical direction order and engage the
   first one that passes the desire test,
3) compare noisy strengths: draw inside the tie band, rout beyond the rout
   threshold, otherwise damage proportional to the gap,
4) a cell whose health reaches zero is captured by the winner's species.

Every cell takes part in at most one engagement per tick, as attacker or
defender. Old-age death is handled here too since it shares the reset path.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
import logging
import random

from pixelwars.cell import Cell
from pixelwars.config import CombatConfig
from pixelwars.grid import Direction, Grid, Vec2

logger = logging.getLogger(__name__)


class Outcome(Enum):
    DRAW = "draw"
    HIT = "hit"
    ROUT = "rout"


@dataclass
class Engagement:
    attacker: Vec2
    defender: Vec2
    direction: Direction
    outcome: Outcome
    damage: int
    captured: Optional[Vec2] = None


class CombatResolver:
    def __init__(
        self,
        grid: Grid,
        config: Optional[CombatConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.grid = grid
        self.config = config or CombatConfig()
        self.rng = rng or random.Random()

    @property
    def modifier_range(self) -> Tuple[int, int]:
        return self.grid.modifier_range

    def _noise(self, span: int) -> int:
        return self.rng.randint(-span, span)

    def wants_to_engage(self, attacker: Cell) -> bool:
        desire = attacker.desire(self.grid.genome_of(attacker))
        return desire + self._noise(self.config.desire_noise) > self.config.engagement_threshold

    def may_act(self, attacker: Cell) -> bool:
        if attacker.fought_this_tick:
            return False
        frequency = attacker.frequency(self.grid.genome_of(attacker))
        return self.rng.randrange(self.config.cadence_threshold) < frequency

    def resolve(self, attacker: Cell, defender: Cell) -> Tuple[Outcome, Optional[Cell], int]:
        """Apply damage for one exchange; returns (outcome, loser, damage to loser)."""
        cfg = self.config
        attack = attacker.strength(self.grid.genome_of(attacker)) + self._noise(cfg.strength_noise)
        defence = defender.strength(self.grid.genome_of(defender)) + self._noise(cfg.strength_noise)
        gap = abs(attack - defence)

        if gap <= cfg.tie_band:
            # A draw never changes ownership.
            for cell in (attacker, defender):
                cell.current_health = max(1, cell.current_health - cfg.draw_damage)
            return Outcome.DRAW, None, cfg.draw_damage

        loser = defender if attack > defence else attacker
        if gap > cfg.rout_threshold:
            damage = loser.current_health
            loser.current_health = 0
            return Outcome.ROUT, loser, damage

        damage = min(max(1, int(gap * cfg.damage_scale)), loser.current_health)
        loser.current_health -= damage
        return Outcome.HIT, loser, damage

    def capture(self, loser: Cell, winner_genome_id: int) -> None:
        loser.reset(
            winner_genome_id, self.grid.population[winner_genome_id], self.rng, self.modifier_range
        )

    def engage(self, x: int, y: int) -> Optional[Engagement]:
        attacker = self.grid.cell_at_mut(x, y)
        if attacker.fought_this_tick:
            return None
        candidates = [
            (direction, defender)
            for direction, defender in self.grid.neighbors_of(x, y).items()
            if not defender.fought_this_tick
        ]
        if not candidates:
            return None
        # One cadence roll per attacker per tick, however many enemies it has.
        if not self.may_act(attacker):
            return None
        for direction, defender in candidates:
            if not self.wants_to_engage(attacker):
                continue

            attacker_genome, defender_genome = attacker.genome_id, defender.genome_id
            outcome, loser, damage = self.resolve(attacker, defender)
            attacker.fought_this_tick = True
            defender.fought_this_tick = True

            target = (x + direction.dx, y + direction.dy)
            captured = None
            if loser is not None and loser.current_health <= 0:
                if loser is defender:
                    winner, previous = attacker_genome, defender_genome
                    captured = target
                else:
                    winner, previous = defender_genome, attacker_genome
                    captured = (x, y)
                self.capture(loser, winner)
                logger.debug(
                    "%s took %s from %s (%s)",
                    self.grid.population[winner].name, captured,
                    self.grid.population[previous].name, outcome.value,
                )
            return Engagement((x, y), target, direction, outcome, damage, captured)
        return None

    def age_cell(self, cell: Cell) -> bool:
        """Advance age by one tick; returns True if the cell died and was respawned."""
        cell.age += 1
        overdue = cell.age - cell.expectancy(self.grid.genome_of(cell))
        if overdue <= 0:
            return False
        if self.rng.random() >= min(1.0, overdue * self.config.death_rate):
            return False
        genome_id = self.grid.population.random_id(self.rng)
        cell.reset(genome_id, self.grid.population[genome_id], self.rng, self.modifier_range)
        return True
