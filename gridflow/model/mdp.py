"""Value iteration planner (MDP) for gridflow."""

import logging
from typing import Optional, Tuple

import numpy as np

from ..config import MdpConfig
from .grid import CellType, GridWorld

logger = logging.getLogger(__name__)


# Action order: up, right, down, left. Index arithmetic below relies on it.
ACTIONS = (
    (0, 1, np.pi / 2),
    (1, 0, 0.0),
    (0, -1, -np.pi / 2),
    (-1, 0, np.pi),
)
ACTION_ANGLES = np.array([a[2] for a in ACTIONS], dtype=np.float32)

# Perpendicular slips for each action (never the reverse)
_LEFT_OF = np.array([3, 0, 1, 2])
_RIGHT_OF = np.array([1, 2, 3, 0])


class ValueIterationPlanner:
    """
    Synchronous value iteration over every cell of a GridWorld.

    The transition model is the slip model:
    P(intended) = 1 - noise, P(each perpendicular) = noise / 2.

    Bumping a wall or the grid edge leaves the agent in place and adds
    wall_penalty on top of step_reward. Wind cells are priced exactly like
    empty cells: the planner has no idea the wind moves the agent.
    """

    def __init__(self, grid: GridWorld, config: Optional[MdpConfig] = None):
        self.grid = grid
        self.config = config or MdpConfig()

        self._values = np.zeros(grid.size, dtype=np.float32)
        self._policy = np.zeros(grid.size, dtype=np.float32)

        # Transition tables, rebuilt when the grid revision moves
        self._dest: Optional[np.ndarray] = None
        self._reward: Optional[np.ndarray] = None
        self._tables_revision = -1

        self.sweeps = 0
        self.last_delta = float('inf')

    def iterate(self, agent_cell: Optional[Tuple[int, int]] = None) -> None:
        """One full Bellman sweep. The agent cell is ignored."""
        if self._tables_revision != self.grid.revision:
            self._build_tables()

        cfg = self.config
        old = self._values.astype(np.float64)

        # T[a, s] = r(s, a) + gamma * V(dest(s, a)) for a deterministic move a
        moves = self._reward + cfg.gamma * old[self._dest]

        # Mix intended direction with the two lateral slips
        q = ((1.0 - cfg.noise) * moves
             + (cfg.noise / 2.0) * moves[_LEFT_OF]
             + (cfg.noise / 2.0) * moves[_RIGHT_OF])

        best = np.argmax(q, axis=0)
        new_values = q[best, np.arange(q.shape[1])]
        new_policy = ACTION_ANGLES[best]

        cells = self.grid.cells.ravel()
        goal = cells == CellType.GOAL
        wall = cells == CellType.WALL
        new_values[goal] = cfg.goal_reward
        new_policy[goal] = 0.0
        new_values[wall] = 0.0
        new_policy[wall] = 0.0

        self.last_delta = float(np.max(np.abs(new_values - old)))
        self._values = new_values.astype(np.float32)
        self._policy = new_policy.astype(np.float32)
        self.sweeps += 1

    def _build_tables(self) -> None:
        """
        Precompute, for every cell and action, where a deterministic move
        lands and what it pays.
        """
        cfg = self.config
        h, w = self.grid.height, self.grid.width
        ys, xs = np.indices((h, w))
        xs = xs.ravel()
        ys = ys.ravel()
        here = ys * w + xs
        walls = self.grid.cells == CellType.WALL

        dest = np.empty((len(ACTIONS), h * w), dtype=np.int64)
        reward = np.empty((len(ACTIONS), h * w), dtype=np.float64)
        for a, (dx, dy, _) in enumerate(ACTIONS):
            nx = xs + dx
            ny = ys + dy
            inside = (nx >= 0) & (nx < w) & (ny >= 0) & (ny < h)
            nxc = np.clip(nx, 0, w - 1)
            nyc = np.clip(ny, 0, h - 1)
            bumped = ~inside | walls[nyc, nxc]

            dest[a] = np.where(bumped, here, nyc * w + nxc)
            reward[a] = np.where(bumped,
                                 cfg.step_reward + cfg.wall_penalty,
                                 cfg.step_reward)

        self._dest = dest
        self._reward = reward
        self._tables_revision = self.grid.revision
        logger.debug("Rebuilt MDP transition tables at revision %d", self.grid.revision)

    def policy(self) -> np.ndarray:
        """Read-only flat view of per-cell headings (radians)."""
        view = self._policy.view()
        view.flags.writeable = False
        return view

    def values(self) -> np.ndarray:
        """Read-only flat view of per-cell values."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    def reset(self) -> None:
        """Zero values and policy."""
        self._values = np.zeros(self.grid.size, dtype=np.float32)
        self._policy = np.zeros(self.grid.size, dtype=np.float32)
        self._tables_revision = -1
        self.last_delta = float('inf')
