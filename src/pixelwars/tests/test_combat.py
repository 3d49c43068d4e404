import logging
import random

import pytest

from pixelwars.cell import Cell, Modifiers
from pixelwars.combat import CombatResolver, Outcome
from pixelwars.config import CombatConfig, PopulationConfig
from pixelwars.genome import Genome, Population
from pixelwars.grid import Direction, Grid

A, B = 0, 1


def _population(strength_a=50, strength_b=50, expectancy=1000):
    return Population(
        [
            Genome("AA", 0.0, base_health=50, base_strength=strength_a, base_desire=50,
                   base_frequency=50, base_expectancy=expectancy),
            Genome("AB", 180.0, base_health=40, base_strength=strength_b, base_desire=50,
                   base_frequency=50, base_expectancy=expectancy),
        ]
    )


def _surrounded(population):
    """3x3 board: species A in the centre, B all around, no modifiers."""
    layout = [B, B, B, B, A, B, B, B, B]
    cells = [Cell(gid, Modifiers(), population[gid].base_health) for gid in layout]
    return Grid.from_cells(3, 3, population, cells)


def _always_fight(**overrides):
    cfg = dict(
        engagement_threshold=-1000,
        desire_noise=0,
        cadence_threshold=1,
        strength_noise=0,
        tie_band=5,
        rout_threshold=60,
        draw_damage=2,
        death_rate=0.0,
    )
    cfg.update(overrides)
    return CombatConfig(**cfg)


def _make_resolver(strength_a=50, strength_b=50, seed=0, **overrides):
    grid = _surrounded(_population(strength_a, strength_b))
    return CombatResolver(grid, _always_fight(**overrides), random.Random(seed))


def test_equal_strength_is_a_draw():
    resolver = _make_resolver()
    grid = resolver.grid
    engagement = resolver.engage(1, 1)

    assert engagement.outcome is Outcome.DRAW
    assert engagement.direction is Direction.N
    assert engagement.defender == (1, 0)
    assert engagement.captured is None
    assert grid.cell_at(1, 1).genome_id == A
    assert grid.cell_at(1, 1).current_health == 50 - 2
    assert grid.cell_at(1, 0).current_health == 40 - 2
    assert grid.cell_at(1, 1).fought_this_tick and grid.cell_at(1, 0).fought_this_tick


def test_draw_never_kills():
    resolver = _make_resolver(draw_damage=10)
    resolver.grid.cell_at(1, 1).current_health = 3
    resolver.engage(1, 1)
    assert resolver.grid.cell_at(1, 1).current_health == 1
    assert resolver.grid.cell_at(1, 1).genome_id == A


def test_rout_captures_defender_with_fresh_modifiers():
    resolver = _make_resolver(strength_a=200)
    grid = resolver.grid
    engagement = resolver.engage(1, 1)

    assert engagement.outcome is Outcome.ROUT
    assert engagement.captured == (1, 0)
    captured = grid.cell_at(1, 0)
    assert captured.genome_id == A
    assert captured.modifiers.within((-10, 10))
    assert captured.current_health == grid.population[A].base_health + captured.modifiers.health
    assert captured.age == 0
    assert captured.fought_this_tick
    # the winner takes no damage from a rout
    assert grid.cell_at(1, 1).current_health == 50


def test_losing_attacker_is_captured_by_defender():
    resolver = _make_resolver(strength_b=200)
    engagement = resolver.engage(1, 1)
    assert engagement.outcome is Outcome.ROUT
    assert engagement.captured == (1, 1)
    assert resolver.grid.cell_at(1, 1).genome_id == B
    assert resolver.grid.census().tolist() == [0, 9]


def test_hit_damage_follows_strength_gap():
    resolver = _make_resolver(strength_a=60, strength_b=50)
    engagement = resolver.engage(1, 1)
    assert engagement.outcome is Outcome.HIT
    assert engagement.damage == 10
    assert engagement.captured is None
    assert resolver.grid.cell_at(1, 0).current_health == 40 - 10
    assert resolver.grid.cell_at(1, 0).genome_id == B
    assert resolver.grid.cell_at(1, 1).current_health == 50


def test_hit_damage_is_capped_at_remaining_health():
    resolver = _make_resolver(strength_a=60, strength_b=50)
    resolver.grid.cell_at(1, 0).current_health = 4
    engagement = resolver.engage(1, 1)
    assert engagement.outcome is Outcome.HIT
    assert engagement.damage == 4
    assert engagement.captured == (1, 0)
    captured = resolver.grid.cell_at(1, 0)
    assert captured.genome_id == A
    assert captured.current_health == 50 + captured.modifiers.health


def test_damage_scale_applies_to_gap():
    resolver = _make_resolver(strength_a=80, strength_b=50, damage_scale=0.5)
    assert resolver.engage(1, 1).damage == 15


def test_no_engagement_without_desire():
    resolver = _make_resolver(engagement_threshold=1000)
    assert resolver.engage(1, 1) is None
    assert not any(c.fought_this_tick for c in resolver.grid.cells)


def test_frequency_gate_blocks_idle_species():
    resolver = _make_resolver(cadence_threshold=100)
    population = Population(
        [
            Genome("AA", 0.0, 50, 50, 50, 0, 1000),
            Genome("AB", 180.0, 40, 50, 50, 0, 1000),
        ]
    )
    resolver.grid = _surrounded(population)
    assert resolver.engage(1, 1) is None


def test_attacker_that_already_fought_does_nothing():
    resolver = _make_resolver()
    resolver.grid.cell_at(1, 1).fought_this_tick = True
    assert resolver.engage(1, 1) is None


def test_defenders_that_already_fought_are_skipped_in_order():
    resolver = _make_resolver()
    grid = resolver.grid
    for direction in (Direction.N, Direction.NE, Direction.E):
        x, y = grid.offset(1, 1, direction)
        grid.cell_at(x, y).fought_this_tick = True
    engagement = resolver.engage(1, 1)
    assert engagement.direction is Direction.SE
    assert engagement.defender == (2, 2)


def test_cell_without_enemies_never_fights():
    population = _population()
    grid = Grid.from_cells(2, 1, population, [Cell(A, Modifiers(), 50), Cell(A, Modifiers(), 50)])
    resolver = CombatResolver(grid, _always_fight(), random.Random(0))
    assert resolver.engage(0, 0) is None


def test_aging_below_expectancy_only_counts():
    resolver = _make_resolver()
    cell = resolver.grid.cell_at(0, 0)
    assert resolver.age_cell(cell) is False
    assert cell.age == 1
    assert cell.genome_id == B


def test_old_cell_dies_and_respawns():
    population = _population(expectancy=0)
    grid = _surrounded(population)
    resolver = CombatResolver(grid, _always_fight(death_rate=1.0), random.Random(3))
    cell = grid.cell_at(0, 0)
    cell.age = 5
    cell.current_health = 7

    assert resolver.age_cell(cell) is True
    assert cell.age == 0
    assert cell.genome_id in (A, B)
    assert cell.modifiers.within((-10, 10))
    assert cell.current_health == population[cell.genome_id].base_health + cell.modifiers.health
    assert cell.fought_this_tick is False


def test_death_probability_rises_with_age():
    population = _population(expectancy=0)
    grid = _surrounded(population)
    resolver = CombatResolver(grid, _always_fight(death_rate=0.1), random.Random(11))

    def deaths(start_age, trials=400):
        count = 0
        for _ in range(trials):
            cell = Cell(A, Modifiers(), 50, age=start_age)
            count += resolver.age_cell(cell)
        return count

    young, old = deaths(0), deaths(8)
    assert young < old
    assert old == pytest.approx(0.9 * 400, abs=40)


def test_frequency_gate_is_rolled_once_per_tick():
    # frequency 20 of 100: the centre should fight about one tick in five,
    # not once per enemy around it
    population = Population(
        [
            Genome("AA", 0.0, 50, 50, 50, 20, 1000),
            Genome("AB", 180.0, 40, 50, 50, 20, 1000),
        ]
    )
    rng = random.Random(7)
    trials = 2000
    fights = 0
    for _ in range(trials):
        grid = _surrounded(population)
        assert len(grid.neighbors_of(1, 1)) == 8
        resolver = CombatResolver(grid, _always_fight(cadence_threshold=100), rng)
        fights += resolver.engage(1, 1) is not None
    assert fights / trials == pytest.approx(0.2, abs=0.05)


def test_capture_rerolls_from_the_grid_modifier_range():
    population = _population(strength_a=200)
    layout = [B, B, B, B, A, B, B, B, B]
    cells = [Cell(gid, Modifiers(), population[gid].base_health) for gid in layout]
    grid = Grid.from_cells(3, 3, population, cells, PopulationConfig(modifier_range=(-2, 2)))
    resolver = CombatResolver(grid, _always_fight(), random.Random(5))
    assert resolver.modifier_range == (-2, 2)

    for seed in range(20):
        resolver.rng = random.Random(seed)
        for cell in grid.cells:
            cell.fought_this_tick = False
        grid.cell_at_mut(1, 0).reset(B, population[B], resolver.rng, (0, 0))
        assert resolver.engage(1, 1).captured == (1, 0)
        assert grid.cell_at(1, 0).modifiers.within((-2, 2))


@pytest.mark.parametrize(
    "strengths,message",
    [
        ((200, 50), "AA took (1, 0) from AB (rout)"),
        ((50, 200), "AB took (1, 1) from AA (rout)"),
    ],
)
def test_capture_log_names_winner_and_previous_owner(caplog, strengths, message):
    resolver = _make_resolver(*strengths)
    with caplog.at_level(logging.DEBUG, logger="pixelwars.combat"):
        resolver.engage(1, 1)
    assert message in caplog.messages
