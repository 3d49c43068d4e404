class ConfigError(ValueError):
    """Invalid construction parameters: bad dimensions, empty population, naming overflow."""


class OutOfBounds(IndexError):
    """Coordinate outside the board."""

    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(f"({x}, {y}) is outside a {width}x{height} board")
        self.x = x
        self.y = y
