from pixelwars.cell import Cell, Modifiers, new_cell, roll_modifiers
from pixelwars.combat import CombatResolver, Engagement, Outcome
from pixelwars.config import (
    CombatConfig,
    DisplayConfig,
    PopulationConfig,
    SimulationConfig,
    build_config,
    load_config,
)
from pixelwars.errors import ConfigError, OutOfBounds
from pixelwars.genome import MAX_SPECIES, Genome, Population, generate_population, species_names
from pixelwars.grid import Direction, Grid
from pixelwars.scheduler import SchedulerState, TickScheduler, TickStats
