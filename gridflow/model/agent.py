"""Agent that follows a planner's policy through a windy world."""

import logging
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from ..config import AgentConfig
from .grid import CellType, GridWorld

logger = logging.getLogger(__name__)


class StopReason(Enum):
    """Why the agent stopped, if it did."""
    NONE = "none"
    WALL = "wall"
    GOAL = "goal"


class Agent:
    """
    Continuous-position agent driven by a per-cell heading field.

    Each tick:
    1. On a goal cell, stop (terminal, no movement).
    2. Head along policy[cell] and add uniform jitter, large on wind
       cells, small elsewhere.
    3. Integrate speed * dt, then add the physical wind vector of the
       landing cell scaled by wind_push * dt.
    4. Landing on a wall or off the grid rejects the move and stops the
       agent.

    The planners never see step 3.
    """

    def __init__(self, grid: GridWorld, x: int = 0, y: int = 0,
                 config: Optional[AgentConfig] = None):
        self.grid = grid
        self.config = config or AgentConfig()
        self.position: Tuple[float, float] = (x + 0.5, y + 0.5)
        self.home: Tuple[int, int] = (x, y)
        self.stop_reason = StopReason.NONE
        self.stopped = False
        self.ticks = 0
        self.distance = 0.0

    @property
    def cell(self) -> Tuple[int, int]:
        return self.grid.cell_of(self.position)

    def place(self, x: int, y: int) -> None:
        """Drop the agent at the centre of (x, y) and set it running.

        Ignored for cells off the grid.
        """
        if not self.grid.in_bounds(x, y):
            logger.debug("place ignored for off-grid cell (%d, %d)", x, y)
            return
        self.position = (x + 0.5, y + 0.5)
        self.home = (x, y)
        self.resume()

    def resume(self) -> None:
        """Clear any stop state without moving."""
        self.stopped = False
        self.stop_reason = StopReason.NONE
        self.ticks = 0
        self.distance = 0.0

    def tick(self, dt: float, policy: np.ndarray,
             rng: np.random.Generator) -> None:
        """Advance one simulation step using the given flat policy."""
        if self.stopped:
            return

        cx, cy = self.cell
        if not self.grid.in_bounds(cx, cy):
            self._stop(StopReason.WALL)
            return
        cell_type = self.grid.get_cell(cx, cy)

        if cell_type == CellType.GOAL:
            self._stop(StopReason.GOAL)
            return

        angle = float(policy[self.grid.flat_index(cx, cy)])
        vx = np.cos(angle)
        vy = np.sin(angle)

        # Physical noise the planners never modelled
        jitter = (self.config.wind_jitter if cell_type == CellType.WIND
                  else self.config.ambient_jitter)
        vx += (rng.random() - 0.5) * jitter
        vy += (rng.random() - 0.5) * jitter

        step = self.config.speed * dt
        next_x = self.position[0] + vx * step
        next_y = self.position[1] + vy * step

        # Wind at the landing cell pushes the agent further
        wx, wy = self.grid.wind_vector(*self.grid.cell_of((next_x, next_y)))
        next_x += wx * self.config.wind_push * dt
        next_y += wy * self.config.wind_push * dt

        self.ticks += 1
        nx, ny = self.grid.cell_of((next_x, next_y))
        if self.grid.get_cell(nx, ny) == CellType.WALL:
            self._stop(StopReason.WALL)
            return

        self.distance += float(np.hypot(next_x - self.position[0],
                                        next_y - self.position[1]))
        self.position = (float(next_x), float(next_y))

    def _stop(self, reason: StopReason) -> None:
        self.stopped = True
        self.stop_reason = reason
        logger.info("Agent stopped at (%.2f, %.2f): %s",
                    self.position[0], self.position[1], reason.value)

    def __repr__(self) -> str:
        return (f"Agent(pos=({self.position[0]:.2f}, {self.position[1]:.2f}), "
                f"stop_reason={self.stop_reason.value})")
