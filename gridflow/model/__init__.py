"""Model package for gridflow."""

from .state import AgentSnapshot, TickState
from .grid import CellType, Direction, WindConfig, GridWorld
from .mdp import ValueIterationPlanner
from .astar import ReplanningSearchPlanner
from .planner import PlannerMode, PlannerBank
from .agent import Agent, StopReason
from .engine import SimulationEngine

__all__ = [
    'AgentSnapshot',
    'TickState',
    'CellType',
    'Direction',
    'WindConfig',
    'GridWorld',
    'ValueIterationPlanner',
    'ReplanningSearchPlanner',
    'PlannerMode',
    'PlannerBank',
    'Agent',
    'StopReason',
    'SimulationEngine',
]
