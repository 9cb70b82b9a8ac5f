"""Grid world and wind hazard model for gridflow."""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class CellType(IntEnum):
    """What occupies a grid cell."""
    EMPTY = 0
    WALL = 1
    WIND = 2
    GOAL = 3


class Direction:
    """Axis unit vectors. x grows to the right, y grows up."""
    NORTH = (0, 1)
    EAST = (1, 0)
    SOUTH = (0, -1)
    WEST = (-1, 0)

    ALL = (NORTH, EAST, SOUTH, WEST)


@dataclass(frozen=True)
class WindConfig:
    """Wind source attached to a WIND cell."""
    dx: int
    dy: int
    force: int

    def __post_init__(self):
        if (self.dx, self.dy) not in Direction.ALL:
            raise ValueError(f"Wind direction must be an axis unit vector, "
                             f"got ({self.dx}, {self.dy})")
        if not isinstance(self.force, (int, np.integer)) or self.force < 1:
            raise ValueError(f"Wind force must be a positive integer, got {self.force!r}")


DEFAULT_WIND = WindConfig(dx=1, dy=0, force=1)


class GridWorld:
    """
    Cell grid plus wind hazard configuration.

    Coordinate convention: (x, y) for API, [y, x] for array indexing.
    Flat index of (x, y) is y * width + x (row-major).

    The wind field is the physical displacement the agent feels. Planners
    never read it.
    """

    def __init__(self, width: int, height: int):
        if width < 1 or height < 1:
            raise ValueError(f"Grid must be at least 1x1, got {width}x{height}")
        self.width = width
        self.height = height

        self.cells = np.zeros((height, width), dtype=np.uint8)

        # flat index -> config, only for WIND cells
        self.wind_configs: Dict[int, WindConfig] = {}

        # Derived (dx, dy) per cell
        self.wind_field = np.zeros((height, width, 2), dtype=np.float32)

        # Bumped on every effective edit
        self.revision = 0

    @property
    def size(self) -> int:
        return self.width * self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def flat_index(self, x: int, y: int) -> int:
        """Row-major index. Does not check bounds."""
        return y * self.width + x

    def cell_of(self, position: Tuple[float, float]) -> Tuple[int, int]:
        """Floor a continuous position to the cell containing it."""
        return int(np.floor(position[0])), int(np.floor(position[1]))

    def get_cell(self, x: int, y: int) -> CellType:
        """Cell type at (x, y); anything off the grid is a wall."""
        if not self.in_bounds(x, y):
            return CellType.WALL
        return CellType(int(self.cells[y, x]))

    def set_cell(self, x: int, y: int, cell_type: CellType) -> None:
        """Change a cell type. Ignored out of bounds."""
        if not self.in_bounds(x, y):
            return
        cell_type = CellType(cell_type)
        index = self.flat_index(x, y)
        self.cells[y, x] = cell_type

        if cell_type == CellType.WIND:
            self.wind_configs.setdefault(index, DEFAULT_WIND)
        else:
            self.wind_configs.pop(index, None)

        self._touch()

    def set_wind(self, x: int, y: int, dx: int, dy: int, force: int) -> None:
        """Configure the wind source on a WIND cell."""
        config = WindConfig(dx=dx, dy=dy, force=force)
        if self.get_cell(x, y) != CellType.WIND:
            logger.debug("set_wind ignored on non-wind cell (%d, %d)", x, y)
            return
        self.wind_configs[self.flat_index(x, y)] = config
        self._touch()

    def get_wind_config(self, x: int, y: int) -> Optional[WindConfig]:
        if not self.in_bounds(x, y):
            return None
        return self.wind_configs.get(self.flat_index(x, y))

    def wind_vector(self, x: int, y: int) -> Tuple[float, float]:
        """Physical wind displacement at (x, y); zero off the grid."""
        if not self.in_bounds(x, y):
            return (0.0, 0.0)
        vx, vy = self.wind_field[y, x]
        return (float(vx), float(vy))

    def wind_sources(self) -> Iterator[Tuple[int, int, WindConfig]]:
        """Yield (x, y, config) for every wind source in row-major order."""
        for index in sorted(self.wind_configs):
            y, x = divmod(index, self.width)
            yield x, y, self.wind_configs[index]

    def goals(self) -> List[Tuple[int, int]]:
        """All goal cells in row-major order."""
        ys, xs = np.nonzero(self.cells == CellType.GOAL)
        return [(int(x), int(y)) for x, y in zip(xs, ys)]

    def first_goal(self) -> Optional[Tuple[int, int]]:
        """First goal hit by a row-major scan, or None."""
        flat = np.flatnonzero(self.cells == CellType.GOAL)
        if flat.size == 0:
            return None
        y, x = divmod(int(flat[0]), self.width)
        return x, y

    def reset(self) -> None:
        """Clear every cell to EMPTY and drop all wind state."""
        self.cells.fill(CellType.EMPTY)
        self.wind_configs.clear()
        self._touch()

    def copy(self) -> "GridWorld":
        other = GridWorld(self.width, self.height)
        other.cells = self.cells.copy()
        other.wind_configs = dict(self.wind_configs)
        other.wind_field = self.wind_field.copy()
        other.revision = self.revision
        return other

    def _touch(self) -> None:
        self.revision += 1
        self._recompute_wind_field()

    def _recompute_wind_field(self) -> None:
        """
        Project every source outward along its direction with linear falloff.

        Cell (sx, sy) + k*d receives d * (force - k + 1) for k = 1..force.
        Overlapping sources add up; walls do not block wind.
        """
        self.wind_field.fill(0.0)
        for sx, sy, config in self.wind_sources():
            for k in range(1, config.force + 1):
                tx = sx + k * config.dx
                ty = sy + k * config.dy
                if not self.in_bounds(tx, ty):
                    break  # rays never re-enter the grid
                strength = max(0, config.force - k + 1)
                self.wind_field[ty, tx, 0] += config.dx * strength
                self.wind_field[ty, tx, 1] += config.dy * strength
