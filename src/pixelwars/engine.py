"""
Run loop for the territory simulation: step -> colour buffer -> render.

Run:
  pixelwars --steps 500 --render
  pixelwars --width 40 --height 30 --species 6 --seed 7 --plot /tmp/pixelwars.png
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple
import argparse
import logging
import random

import numpy as np

from pixelwars.combat import CombatResolver
from pixelwars.config import SimulationConfig, build_config
from pixelwars.genome import Population, generate_population
from pixelwars.grid import Grid, hue_to_rgb
from pixelwars.scheduler import TickScheduler, TickStats

logger = logging.getLogger(__name__)

# Edit these for quick runs without CLI arguments.
RUN_SETTINGS = {
    "steps": 1000,
    "log_every": 50,
    "render": False,
    "render_cell_size": 4,
    "render_fps": 30,
    "plot_path": None,  # e.g., "/tmp/pixelwars.png"
}


def build_simulation(config: SimulationConfig) -> Tuple[Population, Grid, TickScheduler]:
    """Population, board and scheduler sharing one seeded random source."""
    config.validate()
    rng = random.Random(config.seed)
    population = generate_population(config.population.num_species, config.population, rng)
    grid = Grid(config.width, config.height, population, rng, config.population)
    resolver = CombatResolver(grid, config.combat, rng)
    return population, grid, TickScheduler(grid, resolver)


def compute_stats(
    grid: Grid, config: Optional[SimulationConfig] = None, events: Optional[TickStats] = None
) -> Dict[str, object]:
    """Per-species cell counts, mean health and display colour; tick events when given."""
    display = (config or SimulationConfig()).display
    counts = grid.census()
    health = np.zeros(len(grid.population), dtype=float)
    for cell in grid.cells:
        health[cell.genome_id] += cell.current_health
    species = {}
    for genome_id, genome in enumerate(grid.population):
        count = int(counts[genome_id])
        if count == 0:
            continue
        species[genome.name] = {
            "count": count,
            "mean_health": float(health[genome_id] / count),
            "color": hue_to_rgb(genome.hue, display),
        }
    stats: Dict[str, object] = {"species": species, "alive_species": len(species)}
    if events is not None:
        stats.update(
            tick=events.tick,
            engagements=events.engagements,
            captures=events.captures,
            deaths=events.deaths,
        )
    return stats


def run_simulation(
    steps: int = 200,
    log_every: int = 10,
    config: Optional[SimulationConfig] = None,
    collect_history: bool = False,
    render: bool = False,
    render_cell_size: int = 4,
    render_fps: int = 30,
) -> Dict[str, List[float]]:
    cfg = config or SimulationConfig()
    population, grid, scheduler = build_simulation(cfg)
    history: Dict[str, List[float]] = {
        "tick": [],
        "alive_species": [],
        "engagements": [],
        "captures": [],
        "deaths": [],
    }
    renderer = None
    if render:
        try:
            from pixelwars.pygame_renderer import PyGameRenderer
        except Exception as exc:
            raise RuntimeError("pygame is required for rendering") from exc
        renderer = PyGameRenderer(grid.width, grid.height, cell_size=render_cell_size, fps=render_fps)

    try:
        for step_idx in range(steps):
            events = scheduler.step()
            stats = compute_stats(grid, cfg, events)
            if collect_history:
                history["tick"].append(events.tick)
                history["alive_species"].append(stats["alive_species"])
                history["engagements"].append(events.engagements)
                history["captures"].append(events.captures)
                history["deaths"].append(events.deaths)
                for genome in population:
                    entry = stats["species"].get(genome.name)
                    history.setdefault(f"count_{genome.name}", []).append(entry["count"] if entry else 0)
            if log_every > 0 and (step_idx % log_every == 0 or step_idx == steps - 1):
                logger.info(
                    "t=%04d species=%3d engagements=%5d captures=%5d deaths=%4d",
                    events.tick, stats["alive_species"], events.engagements, events.captures, events.deaths,
                )
            if renderer:
                if not renderer.update(grid.to_color_buffer(cfg.display), events.tick, stats=stats):
                    break
            if stats["alive_species"] == 1:
                logger.info("t=%04d one species left, stopping", events.tick)
                break
    finally:
        if renderer:
            renderer.close()
    return history if collect_history else {}


def plot_history(history: Dict[str, List[float]], out_path: Optional[str] = None) -> None:
    try:
        import matplotlib.pyplot as plt
    except Exception as exc:
        raise RuntimeError("matplotlib is required for plotting") from exc

    ticks = history.get("tick", [])
    species_keys = sorted(k for k in history.keys() if k.startswith("count_"))

    fig, axes = plt.subplots(2, 1, figsize=(10, 6), sharex=True)

    ax = axes[0]
    for key in species_keys:
        ax.plot(ticks, history[key], label=key.replace("count_", ""))
    ax.set_ylabel("cells")
    if len(species_keys) <= 16:
        ax.legend(ncol=4, fontsize="small")

    ax = axes[1]
    ax.plot(ticks, history.get("captures", []), label="captures")
    ax.plot(ticks, history.get("deaths", []), label="deaths")
    ax.set_ylabel("events per tick")
    ax.legend()

    axes[-1].set_xlabel("tick")

    fig.tight_layout()
    if out_path:
        fig.savefig(out_path)
    else:
        plt.show()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Territorial species simulation on a pixel grid")
    p.add_argument("--config", type=str, default=None, help="JSON config file")
    p.add_argument("--steps", type=int, default=RUN_SETTINGS["steps"])
    p.add_argument("--width", type=int, default=None)
    p.add_argument("--height", type=int, default=None)
    p.add_argument("--species", type=int, default=None)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--log-every", type=int, default=RUN_SETTINGS["log_every"])
    p.add_argument("--log-level", type=str, default="INFO")
    p.add_argument("--render", action="store_true", default=RUN_SETTINGS["render"])
    p.add_argument("--cell-size", type=int, default=RUN_SETTINGS["render_cell_size"])
    p.add_argument("--fps", type=int, default=RUN_SETTINGS["render_fps"])
    p.add_argument("--plot", type=str, default=RUN_SETTINGS["plot_path"], help="save history plot here")
    p.add_argument("--list-species", action="store_true", help="print the species table and exit")
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    overrides: Dict[str, object] = {}
    if args.width is not None:
        overrides["width"] = args.width
    if args.height is not None:
        overrides["height"] = args.height
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.species is not None:
        overrides["population.num_species"] = args.species
    cfg = build_config(overrides, path=args.config)

    if args.list_species:
        population = generate_population(cfg.population.num_species, cfg.population, random.Random(cfg.seed))
        for line in population.describe():
            print(line)
        return

    history = run_simulation(
        steps=args.steps,
        log_every=args.log_every,
        config=cfg,
        collect_history=bool(args.plot),
        render=args.render,
        render_cell_size=args.cell_size,
        render_fps=args.fps,
    )
    if args.plot:
        plot_history(history, args.plot)


if __name__ == "__main__":
    main()
