from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List
import logging

from pixelwars.combat import CombatResolver, Outcome
from pixelwars.grid import Grid

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    IDLE = "idle"
    STEPPING = "stepping"


@dataclass
class TickStats:
    tick: int
    engagements: int = 0
    draws: int = 0
    hits: int = 0
    routs: int = 0
    captures: int = 0
    deaths: int = 0
    # engagements initiated per cell index, for instrumentation
    attacks_by_cell: Counter = field(default_factory=Counter)


class TickScheduler:
    """Drives whole-board steps: reset flags, age every cell, then combat.

    Cells are visited row-major and mutated in place, so a cell visited later
    in a tick sees neighbours already changed earlier in the same tick.
    """

    def __init__(self, grid: Grid, resolver: CombatResolver):
        self.grid = grid
        self.resolver = resolver
        self.tick = 0
        self._state = SchedulerState.IDLE

    @property
    def state(self) -> SchedulerState:
        return self._state

    def step(self) -> TickStats:
        if self._state is not SchedulerState.IDLE:
            raise RuntimeError(f"Tick {self.tick + 1} requested while a tick is in progress")
        self._state = SchedulerState.STEPPING
        try:
            stats = self._step()
        finally:
            self._state = SchedulerState.IDLE
        self.tick = stats.tick
        return stats

    def _step(self) -> TickStats:
        grid = self.grid
        stats = TickStats(tick=self.tick + 1)

        for cell in grid.cells:
            cell.fought_this_tick = False

        for cell in grid.cells:
            if self.resolver.age_cell(cell):
                stats.deaths += 1

        for index in range(len(grid.cells)):
            x, y = grid.coords(index)
            engagement = self.resolver.engage(x, y)
            if engagement is None:
                continue
            stats.engagements += 1
            stats.attacks_by_cell[index] += 1
            if engagement.outcome is Outcome.DRAW:
                stats.draws += 1
            elif engagement.outcome is Outcome.ROUT:
                stats.routs += 1
            else:
                stats.hits += 1
            if engagement.captured is not None:
                stats.captures += 1

        logger.debug(
            "tick %d: engagements=%d captures=%d deaths=%d",
            stats.tick, stats.engagements, stats.captures, stats.deaths,
        )
        return stats

    def run(self, ticks: int) -> List[TickStats]:
        return [self.step() for _ in range(ticks)]
