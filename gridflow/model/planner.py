"""Planner selection for gridflow."""

import logging
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np

from ..config import MdpConfig
from .astar import ReplanningSearchPlanner
from .grid import GridWorld
from .mdp import ValueIterationPlanner

logger = logging.getLogger(__name__)


class PlannerMode(Enum):
    """Which planner drives the agent."""
    MDP = "mdp"
    ASTAR = "astar"


AnyPlanner = Union[ValueIterationPlanner, ReplanningSearchPlanner]


class PlannerBank:
    """
    Holds one planner of each kind and dispatches on an explicit mode flag.

    Both planners expose iterate / policy / values / reset. Only the
    active one is advanced; switching mode resets the newly selected one.
    """

    def __init__(self, grid: GridWorld,
                 mdp_config: Optional[MdpConfig] = None,
                 mode: PlannerMode = PlannerMode.MDP):
        self.mdp = ValueIterationPlanner(grid, mdp_config)
        self.astar = ReplanningSearchPlanner(grid)
        self.mode = PlannerMode(mode)

    @property
    def active(self) -> AnyPlanner:
        if self.mode == PlannerMode.MDP:
            return self.mdp
        return self.astar

    def select(self, mode: PlannerMode) -> None:
        mode = PlannerMode(mode)
        if mode != self.mode:
            logger.info("Switching planner %s -> %s", self.mode.value, mode.value)
        self.mode = mode
        self.active.reset()

    def iterate(self, agent_cell: Optional[Tuple[int, int]] = None) -> None:
        self.active.iterate(agent_cell)

    def policy(self) -> np.ndarray:
        return self.active.policy()

    def values(self) -> np.ndarray:
        return self.active.values()

    def reset(self) -> None:
        """Reset both planners."""
        self.mdp.reset()
        self.astar.reset()
