"""State snapshot dataclasses for gridflow simulations."""

from dataclasses import dataclass
from typing import Dict
import numpy as np


@dataclass(frozen=True)
class AgentSnapshot:
    """Immutable snapshot of the agent at a given tick."""
    x: float
    y: float
    cell_x: int
    cell_y: int
    stopped: bool
    stop_reason: str  # "none", "wall", "goal"


@dataclass
class TickState:
    """Complete snapshot of the simulation after one tick."""
    step: int
    planner: str
    agent: AgentSnapshot
    policy: np.ndarray   # Copy of the active planner's policy
    values: np.ndarray   # Copy of the active planner's values
    metrics: Dict[str, float]
