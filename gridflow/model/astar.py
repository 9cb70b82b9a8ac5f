"""Replanning A* planner for gridflow."""

import heapq
import logging
from itertools import count
from typing import Dict, List, Optional, Tuple

import numpy as np

from .grid import CellType, GridWorld
from .mdp import ACTIONS

logger = logging.getLogger(__name__)

ON_PATH = 1.0
VISITED = 0.2


def manhattan(a: Tuple[int, int], b: Tuple[int, int]) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


class ReplanningSearchPlanner:
    """
    Full A* search from the agent cell to the goal, redone on every call.

    The target is the first goal found by a row-major scan, not the nearest
    one. Every move costs 1, wind cells included.

    Output is a path mask rather than a cost estimate: path cells get
    value 1.0 and the heading towards the next path cell; other cells
    discovered during the search get 0.2; everything else is 0.
    """

    def __init__(self, grid: GridWorld):
        self.grid = grid
        self._values = np.zeros(grid.size, dtype=np.float32)
        self._policy = np.zeros(grid.size, dtype=np.float32)

        self.searches = 0
        self.last_path: List[Tuple[int, int]] = []
        self.last_target: Optional[Tuple[int, int]] = None

    def iterate(self, agent_cell: Optional[Tuple[int, int]] = None) -> None:
        """
        Search from agent_cell. On any failure the previous output is kept
        untouched.
        """
        if agent_cell is None:
            logger.debug("A* iterate called without an agent cell; skipped")
            return

        start = (int(agent_cell[0]), int(agent_cell[1]))
        if not self.grid.in_bounds(*start):
            logger.debug("A* start %s is off the grid", start)
            return

        goal = self.grid.first_goal()
        self.last_target = goal
        if goal is None:
            logger.debug("A* found no goal on the grid")
            self.last_path = []
            return

        result = self._search(start, goal)
        if result is None:
            logger.debug("A* found no path from %s to %s", start, goal)
            self.last_path = []
            return

        path, discovered = result
        self._commit(path, discovered)
        self.searches += 1

    def _search(self, start: Tuple[int, int], goal: Tuple[int, int]
                ) -> Optional[Tuple[List[Tuple[int, int]], List[int]]]:
        """
        Plain A* with a binary heap keyed on (f, insertion order).

        Returns the path (start..goal) and the flat indices of every cell
        pushed onto the open set, or None if the goal is unreachable.
        """
        grid = self.grid
        start_idx = grid.flat_index(*start)
        goal_idx = grid.flat_index(*goal)

        tiebreak = count()
        open_heap = [(manhattan(start, goal), next(tiebreak), start_idx)]
        g_score: Dict[int, int] = {start_idx: 0}
        came_from: Dict[int, int] = {}
        closed = set()
        discovered: List[int] = []

        while open_heap:
            _, _, current = heapq.heappop(open_heap)
            if current in closed:
                continue  # stale entry
            if current == goal_idx:
                return self._reconstruct(came_from, current), discovered

            closed.add(current)
            cy, cx = divmod(current, grid.width)

            for dx, dy, _ in ACTIONS:
                nx, ny = cx + dx, cy + dy
                if grid.get_cell(nx, ny) == CellType.WALL:
                    continue
                neighbor = grid.flat_index(nx, ny)
                if neighbor in closed:
                    continue

                tentative_g = g_score[current] + 1
                if tentative_g < g_score.get(neighbor, np.inf):
                    g_score[neighbor] = tentative_g
                    came_from[neighbor] = current
                    f = tentative_g + manhattan((nx, ny), goal)
                    heapq.heappush(open_heap, (f, next(tiebreak), neighbor))
                    discovered.append(neighbor)

        return None

    def _reconstruct(self, came_from: Dict[int, int], current: int) -> List[Tuple[int, int]]:
        path = [current]
        while current in came_from:
            current = came_from[current]
            path.append(current)
        path.reverse()
        return [(i % self.grid.width, i // self.grid.width) for i in path]

    def _commit(self, path: List[Tuple[int, int]], discovered: List[int]) -> None:
        """Overwrite both arrays with the result of a successful search."""
        values = np.zeros(self.grid.size, dtype=np.float32)
        policy = np.zeros(self.grid.size, dtype=np.float32)

        values[discovered] = VISITED

        for (x0, y0), (x1, y1) in zip(path, path[1:]):
            index = self.grid.flat_index(x0, y0)
            policy[index] = np.arctan2(y1 - y0, x1 - x0)
            values[index] = ON_PATH
        # Goal cell
        values[self.grid.flat_index(*path[-1])] = ON_PATH

        self._values = values
        self._policy = policy
        self.last_path = path

    def policy(self) -> np.ndarray:
        """Read-only flat view of per-cell headings (radians)."""
        view = self._policy.view()
        view.flags.writeable = False
        return view

    def values(self) -> np.ndarray:
        """Read-only flat view of the path mask."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    def reset(self) -> None:
        """Zero both arrays and forget the last search."""
        self._values = np.zeros(self.grid.size, dtype=np.float32)
        self._policy = np.zeros(self.grid.size, dtype=np.float32)
        self.last_path = []
        self.last_target = None
