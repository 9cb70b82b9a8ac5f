"""Tick-driven simulation engine for gridflow."""

import logging
import math
from typing import Dict, Optional, Tuple, TYPE_CHECKING

import numpy as np

from ..config import SimulationConfig
from .agent import Agent, StopReason
from .grid import GridWorld
from .planner import PlannerBank, PlannerMode
from .state import AgentSnapshot, TickState

if TYPE_CHECKING:
    from ..export.scenario import Scenario

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    Owns the world and runs the planner/agent loop.

    One step():
    1. Reset planners if the grid was edited since the last step
    2. Advance the active planner (one MDP sweep, or a fresh A* search
       when the agent cell or the grid changed)
    3. Tick the agent with the planner's current policy
    4. Return a state snapshot

    The engine is also the handle callers use to edit and inspect the
    world: grid, planners and agent are public attributes.
    """

    def __init__(self, config: Optional[SimulationConfig] = None,
                 grid: Optional[GridWorld] = None):
        self.config = config or SimulationConfig()
        self.current_step = 0
        self.rng = np.random.default_rng(self.config.seed)

        if grid is None:
            grid = GridWorld(self.config.grid.width, self.config.grid.height)
        start = self.config.agent.start
        self._build(grid, start)

        self.planners.select(PlannerMode(self._initial_mode()))

    def _initial_mode(self) -> str:
        # "both" is a CLI concern; a single engine starts on the MDP
        return "mdp" if self.config.planner == "both" else self.config.planner

    def _build(self, grid: GridWorld, start: Tuple[int, int]) -> None:
        """(Re)bind grid, planners and agent together."""
        previous = getattr(self, 'planners', None)
        mode = previous.mode if previous is not None else PlannerMode.MDP

        self.grid = grid
        self.planners = PlannerBank(grid, self.config.mdp, mode)
        self.agent = Agent(grid, *start, config=self.config.agent)

        self._seen_revision = grid.revision
        self._searched_for: Optional[Tuple[int, Tuple[int, int]]] = None

    @property
    def mode(self) -> PlannerMode:
        return self.planners.mode

    def place_agent(self, x: int, y: int) -> None:
        """Put the agent on (x, y) and make that its home cell.

        Off-grid cells are ignored.
        """
        if not self.grid.in_bounds(x, y):
            logger.debug("place_agent ignored for off-grid cell (%d, %d)", x, y)
            return
        self.agent.place(x, y)
        self._searched_for = None

    def select_planner(self, mode: PlannerMode) -> None:
        self.planners.select(PlannerMode(mode))
        self._searched_for = None

    def reset_run(self) -> None:
        """Send the agent home and clear planner output."""
        self.agent.place(*self.agent.home)
        self.planners.reset()
        self._searched_for = None
        self.current_step = 0

    def new_world(self, width: int, height: int) -> None:
        """Replace the grid with an empty one of the given size."""
        self._build(GridWorld(width, height), (0, 0))
        self.current_step = 0

    def load_scenario(self, scenario: "Scenario") -> None:
        """Swap in a fully parsed scenario in one go."""
        start = scenario.agent_cell or (0, 0)
        self._build(scenario.grid, start)
        self.current_step = 0
        logger.info("Loaded scenario %r (%dx%d), agent at %s",
                    scenario.name, scenario.grid.width, scenario.grid.height, start)

    def step(self, dt: Optional[float] = None) -> TickState:
        """Execute one tick."""
        dt = self.config.dt if dt is None else dt
        self.current_step += 1

        # Any edit invalidates both planners' output
        if self.grid.revision != self._seen_revision:
            logger.debug("Grid revision %d -> %d, resetting planners",
                         self._seen_revision, self.grid.revision)
            self.planners.reset()
            self._seen_revision = self.grid.revision
            self._searched_for = None

        self._advance_planner()
        self.agent.tick(dt, self.planners.policy(), self.rng)

        return self._create_state_snapshot()

    def _advance_planner(self) -> None:
        if self.mode == PlannerMode.MDP:
            self.planners.iterate()
            return

        # A* is a full search, so only redo it when something moved
        key = (self.grid.revision, self.agent.cell)
        if key != self._searched_for:
            self.planners.iterate(self.agent.cell)
            self._searched_for = key

    def _create_state_snapshot(self) -> TickState:
        x, y = self.agent.position
        cx, cy = self.agent.cell
        wx, wy = self.grid.wind_vector(cx, cy)

        agent_snapshot = AgentSnapshot(
            x=x,
            y=y,
            cell_x=cx,
            cell_y=cy,
            stopped=self.agent.stopped,
            stop_reason=self.agent.stop_reason.value
        )

        metrics = {
            'wind_magnitude': math.hypot(wx, wy),
            'distance': self.agent.distance,
            'agent_ticks': self.agent.ticks,
            'mdp_sweeps': self.planners.mdp.sweeps,
            'mdp_delta': self.planners.mdp.last_delta,
            'astar_searches': self.planners.astar.searches,
            'path_length': len(self.planners.astar.last_path),
        }

        return TickState(
            step=self.current_step,
            planner=self.mode.value,
            agent=agent_snapshot,
            policy=np.array(self.planners.policy(), copy=True),
            values=np.array(self.planners.values(), copy=True),
            metrics=metrics
        )

    def is_finished(self) -> bool:
        """Check if the run should terminate."""
        return (self.current_step >= self.config.max_steps or
                self.agent.stopped)

    def get_summary(self) -> Dict:
        """Summary statistics for the current run."""
        return {
            'planner': self.mode.value,
            'total_steps': self.current_step,
            'outcome': self.agent.stop_reason.value,
            'reached_goal': self.agent.stop_reason == StopReason.GOAL,
            'hit_wall': self.agent.stop_reason == StopReason.WALL,
            'distance': self.agent.distance,
            'final_cell': self.agent.cell,
            'mdp_sweeps': self.planners.mdp.sweeps,
            'astar_searches': self.planners.astar.searches,
        }
