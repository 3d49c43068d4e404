"""
Board of cells with bounds-checked 8-neighbour lookup.

(0, 0) is the top-left corner, x grows to the right and y downward. Cells are
stored row-major in a flat list that is allocated once; ticks mutate the
cells in place.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple
import colorsys
import logging
import random

import numpy as np

from pixelwars.cell import Cell, new_cell
from pixelwars.config import DisplayConfig, PopulationConfig, validate_population
from pixelwars.errors import ConfigError, OutOfBounds
from pixelwars.genome import Genome, Population

logger = logging.getLogger(__name__)


Vec2 = Tuple[int, int]


class Direction(Enum):
    """Compass offsets, in the canonical order used for combat."""

    N = (0, -1)
    NE = (1, -1)
    E = (1, 0)
    SE = (1, 1)
    S = (0, 1)
    SW = (-1, 1)
    W = (-1, 0)
    NW = (-1, -1)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]


def hue_to_rgb(hue: float, display: DisplayConfig) -> Tuple[int, int, int]:
    r, g, b = colorsys.hls_to_rgb((hue % 360.0) / 360.0, display.lightness, display.saturation)
    return int(round(r * 255)), int(round(g * 255)), int(round(b * 255))


class Grid:
    def __init__(
        self,
        width: int,
        height: int,
        population: Population,
        rng: Optional[random.Random] = None,
        config: Optional[PopulationConfig] = None,
        cells: Optional[Sequence[Cell]] = None,
    ):
        if width <= 0 or height <= 0:
            raise ConfigError(f"Board dimensions must be positive, got {width}x{height}")
        if len(population) == 0:
            raise ConfigError("Cannot populate a board from an empty population")
        config = config or PopulationConfig()
        validate_population(config)
        # Captures and respawns reroll from this range, so every species must
        # survive the worst health roll.
        modifier_range = config.modifier_range
        for genome in population:
            if genome.base_health + modifier_range[0] <= 0:
                raise ConfigError(
                    f"Species {genome.name} has base_health {genome.base_health}, "
                    f"a {modifier_range[0]} health modifier would leave a cell with no health"
                )
        self.width = width
        self.height = height
        self.population = population
        self.modifier_range = modifier_range
        self._palette: Dict[Tuple[float, float], np.ndarray] = {}

        if cells is not None:
            if len(cells) != width * height:
                raise ConfigError(f"Expected {width * height} cells, got {len(cells)}")
            for cell in cells:
                if not 0 <= cell.genome_id < len(population):
                    raise ConfigError(f"Cell refers to unknown genome id {cell.genome_id}")
                if cell.current_health <= 0:
                    raise ConfigError(f"Cell of genome {cell.genome_id} has no health ({cell.current_health})")
            self.cells: List[Cell] = list(cells)
            return

        rng = rng or random.Random()
        self.cells = []
        for _ in range(width * height):
            genome_id = population.random_id(rng)
            self.cells.append(new_cell(genome_id, population[genome_id], rng, modifier_range))
        logger.info("Board %dx%d seeded with %d species", width, height, len(population))

    @classmethod
    def from_cells(
        cls,
        width: int,
        height: int,
        population: Population,
        cells: Sequence[Cell],
        config: Optional[PopulationConfig] = None,
    ) -> "Grid":
        """Build a board from explicit cells, e.g. a hand-made scenario."""
        return cls(width, height, population, config=config, cells=cells)

    # ---- geometry ----

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def index(self, x: int, y: int) -> int:
        if not self.in_bounds(x, y):
            raise OutOfBounds(x, y, self.width, self.height)
        return y * self.width + x

    def coords(self, index: int) -> Vec2:
        return index % self.width, index // self.width

    def offset(self, x: int, y: int, direction: Direction) -> Optional[Vec2]:
        nx, ny = x + direction.dx, y + direction.dy
        if not self.in_bounds(nx, ny):
            return None
        return nx, ny

    # ---- access ----

    def cell_at(self, x: int, y: int) -> Cell:
        return self.cells[self.index(x, y)]

    def cell_at_mut(self, x: int, y: int) -> Cell:
        # Same object as cell_at; named separately so writers are easy to find.
        return self.cells[self.index(x, y)]

    def genome_of(self, cell: Cell) -> Genome:
        return self.population[cell.genome_id]

    def neighbors_of(self, x: int, y: int) -> Dict[Direction, Cell]:
        """Enemy neighbours only, keyed by direction in canonical order."""
        own = self.cell_at(x, y).genome_id
        enemies: Dict[Direction, Cell] = {}
        for direction in Direction:
            pos = self.offset(x, y, direction)
            if pos is None:
                continue
            other = self.cells[pos[1] * self.width + pos[0]]
            if other.genome_id != own:
                enemies[direction] = other
        return enemies

    # ---- read-only views ----

    def genome_ids(self) -> np.ndarray:
        ids = np.fromiter((c.genome_id for c in self.cells), dtype=np.int64, count=len(self.cells))
        return ids.reshape(self.height, self.width)

    def _palette_for(self, display: DisplayConfig) -> np.ndarray:
        key = (display.saturation, display.lightness)
        palette = self._palette.get(key)
        if palette is None:
            palette = np.array([hue_to_rgb(g.hue, display) for g in self.population], dtype=np.uint8)
            self._palette[key] = palette
        return palette

    def to_color_buffer(self, display: Optional[DisplayConfig] = None) -> np.ndarray:
        """Row-major RGB buffer of shape (height, width, 3), one colour per cell."""
        palette = self._palette_for(display or DisplayConfig())
        buffer = palette[self.genome_ids()]
        buffer.flags.writeable = False
        return buffer

    def census(self) -> np.ndarray:
        return np.bincount(self.genome_ids().ravel(), minlength=len(self.population))

    def inspect(self, x: int, y: int) -> Dict[str, object]:
        cell = self.cell_at(x, y)
        return {
            "species": self.genome_of(cell).name,
            "enemies": {
                direction.name: self.genome_of(other).name
                for direction, other in self.neighbors_of(x, y).items()
            },
        }
