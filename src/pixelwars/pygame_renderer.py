import numpy as np
import pygame
from dataclasses import dataclass


@dataclass
class GuiStyle:
    margin: int = 10
    panel_width: int = 220
    panel_padding: int = 12
    background_color: tuple = (245, 245, 245)
    panel_background: tuple = (235, 235, 235)
    text_color: tuple = (20, 20, 20)
    line_species: tuple = (60, 90, 220)
    swatch_size: int = 10
    max_species_lines: int = 12


class PyGameRenderer:
    """Blits the board's colour buffer once per tick; never touches the simulation."""

    def __init__(self, width: int, height: int, cell_size: int = 4, fps: int = 30):
        self.width = width
        self.height = height
        self.cell_size = cell_size
        self.fps = fps
        self.style = GuiStyle()

        self.board_size = (width * cell_size, height * cell_size)
        window_width = self.style.margin * 2 + self.board_size[0] + self.style.panel_width
        window_height = self.style.margin * 2 + max(self.board_size[1], 240) + 24
        pygame.init()
        self.screen = pygame.display.set_mode((window_width, window_height))
        pygame.display.set_caption("pixelwars")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont(None, 20)
        self.small_font = pygame.font.SysFont(None, 16)

        self.history_steps = []
        self.history_species = []
        self.history_max = 200

    def close(self) -> None:
        pygame.quit()

    def update(self, buffer: np.ndarray, step: int, stats: dict | None = None) -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False

        self.screen.fill(self.style.background_color)
        self._draw_board(buffer)
        self._draw_text(step, stats)
        self._draw_panel(step, stats)

        pygame.display.flip()
        self.clock.tick(self.fps)
        return True

    def _draw_board(self, buffer: np.ndarray) -> None:
        # surfarray indexes (x, y); the buffer is (row, column)
        surface = pygame.surfarray.make_surface(np.ascontiguousarray(buffer.swapaxes(0, 1)))
        if self.cell_size != 1:
            surface = pygame.transform.scale(surface, self.board_size)
        self.screen.blit(surface, (self.style.margin, self.style.margin))

    def _draw_text(self, step: int, stats: dict | None) -> None:
        alive = stats.get("alive_species", 0) if stats else 0
        text = f"t={step} species={alive}"
        surface = self.font.render(text, True, self.style.text_color)
        self.screen.blit(surface, (self.style.margin, self.style.margin + self.board_size[1] + 2))

    def _draw_panel(self, step: int, stats: dict | None) -> None:
        panel_x = self.style.margin + self.board_size[0] + self.style.margin
        panel_y = self.style.margin
        panel_w = self.style.panel_width - self.style.margin
        panel_h = max(self.board_size[1], 240)
        rect = pygame.Rect(panel_x, panel_y, panel_w, panel_h)
        pygame.draw.rect(self.screen, self.style.panel_background, rect)

        y = panel_y + self.style.panel_padding
        y = self._draw_panel_line(panel_x, y, f"Step: {step}", bold=True)
        if stats:
            self._push_history(step, stats.get("alive_species", 0))
            y = self._draw_panel_line(panel_x, y, f"Captures: {stats.get('captures', 0)}")
            y = self._draw_panel_line(panel_x, y, f"Deaths: {stats.get('deaths', 0)}")
            y += 6
            species = sorted(stats.get("species", {}).items(), key=lambda kv: -kv[1]["count"])
            for name, entry in species[: self.style.max_species_lines]:
                y = self._draw_species_line(panel_x, y, name, entry)

        # Sparkline at bottom
        spark_h = 60
        spark_y = panel_y + panel_h - spark_h - self.style.panel_padding
        spark_rect = pygame.Rect(panel_x + self.style.panel_padding, spark_y, panel_w - 2 * self.style.panel_padding, spark_h)
        pygame.draw.rect(self.screen, (225, 225, 225), spark_rect)
        self._draw_sparkline(spark_rect)

    def _push_history(self, step: int, alive: int) -> None:
        self.history_steps.append(step)
        self.history_species.append(alive)
        if len(self.history_steps) > self.history_max:
            self.history_steps.pop(0)
            self.history_species.pop(0)

    def _draw_panel_line(self, x: int, y: int, text: str, bold: bool = False) -> int:
        font = self.font if bold else self.small_font
        surface = font.render(text, True, self.style.text_color)
        self.screen.blit(surface, (x + self.style.panel_padding, y))
        return y + surface.get_height() + 2

    def _draw_species_line(self, x: int, y: int, name: str, entry: dict) -> int:
        size = self.style.swatch_size
        swatch = pygame.Rect(x + self.style.panel_padding, y + 2, size, size)
        pygame.draw.rect(self.screen, entry["color"], swatch)
        surface = self.small_font.render(f"{name}: {entry['count']}", True, self.style.text_color)
        self.screen.blit(surface, (swatch.right + 6, y))
        return y + max(surface.get_height(), size) + 2

    def _draw_sparkline(self, rect: pygame.Rect) -> None:
        if len(self.history_steps) < 2:
            return
        max_count = max(max(self.history_species), 1)
        n = len(self.history_steps)
        for i in range(1, n):
            x0 = rect.x + int((i - 1) / (n - 1) * rect.width)
            x1 = rect.x + int(i / (n - 1) * rect.width)
            y0 = rect.y + rect.height - int(self.history_species[i - 1] / max_count * rect.height)
            y1 = rect.y + rect.height - int(self.history_species[i] / max_count * rect.height)
            pygame.draw.line(self.screen, self.style.line_species, (x0, y0), (x1, y1), 2)
