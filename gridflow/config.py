"""Configuration dataclasses and YAML loader for gridflow simulations."""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple
from pathlib import Path
import yaml


PLANNER_CHOICES = ("mdp", "astar", "both")


@dataclass
class GridConfig:
    width: int = 15
    height: int = 15


@dataclass
class MdpConfig:
    gamma: float = 0.95         # discount factor
    noise: float = 0.2          # lateral slip probability (split over both sides)
    goal_reward: float = 10.0
    step_reward: float = -0.1
    wall_penalty: float = -1.0  # added to step_reward on a bump


@dataclass
class AgentConfig:
    speed: float = 8.0           # cells per second
    wind_jitter: float = 3.0     # uniform jitter span on wind cells
    ambient_jitter: float = 0.2  # uniform jitter span elsewhere
    wind_push: float = 1.0       # scale of the physical wind displacement
    start: Tuple[int, int] = (0, 0)


@dataclass
class SimulationConfig:
    grid: GridConfig = field(default_factory=GridConfig)
    mdp: MdpConfig = field(default_factory=MdpConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    max_steps: int = 600
    dt: float = 1 / 60
    planner: str = "mdp"
    scenario: Optional[Path] = None

    # Export flags (can be overridden by CLI)
    csv_enabled: bool = True
    quiet: bool = False
    seed: Optional[int] = None
    out_dir: Path = field(default_factory=lambda: Path("./output"))

    def validate(self) -> None:
        """Raise ValueError on settings no run can use."""
        if self.grid.width < 1 or self.grid.height < 1:
            raise ValueError(f"Grid must be at least 1x1, got "
                             f"{self.grid.width}x{self.grid.height}")
        sx, sy = self.agent.start
        if not (0 <= sx < self.grid.width and 0 <= sy < self.grid.height):
            raise ValueError(f"Agent start {self.agent.start} is outside the "
                             f"{self.grid.width}x{self.grid.height} grid")
        if not 0.0 <= self.mdp.gamma < 1.0:
            raise ValueError(f"gamma must be in [0, 1), got {self.mdp.gamma}")
        if not 0.0 <= self.mdp.noise <= 1.0:
            raise ValueError(f"noise must be in [0, 1], got {self.mdp.noise}")
        if self.dt <= 0.0:
            raise ValueError(f"dt must be > 0, got {self.dt}")
        if self.max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {self.max_steps}")
        if self.planner not in PLANNER_CHOICES:
            raise ValueError(f"Unknown planner: {self.planner}")


def _parse_mdp(mdp_raw: Dict[str, Any]) -> MdpConfig:
    """Parse MDP parameters, falling back to defaults."""
    defaults = MdpConfig()
    return MdpConfig(
        gamma=float(mdp_raw.get('gamma', defaults.gamma)),
        noise=float(mdp_raw.get('noise', defaults.noise)),
        goal_reward=float(mdp_raw.get('goal_reward', defaults.goal_reward)),
        step_reward=float(mdp_raw.get('step_reward', defaults.step_reward)),
        wall_penalty=float(mdp_raw.get('wall_penalty', defaults.wall_penalty))
    )


def _parse_agent(agent_raw: Dict[str, Any]) -> AgentConfig:
    """Parse agent dynamics, falling back to defaults."""
    defaults = AgentConfig()
    start = agent_raw.get('start', defaults.start)
    return AgentConfig(
        speed=float(agent_raw.get('speed', defaults.speed)),
        wind_jitter=float(agent_raw.get('wind_jitter', defaults.wind_jitter)),
        ambient_jitter=float(agent_raw.get('ambient_jitter', defaults.ambient_jitter)),
        wind_push=float(agent_raw.get('wind_push', defaults.wind_push)),
        start=(int(start[0]), int(start[1]))
    )


def load_config(config_path: Path) -> SimulationConfig:
    """Load and validate YAML configuration file."""
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    # Parse grid config
    grid = GridConfig(
        width=raw['grid']['width'],
        height=raw['grid']['height']
    )

    sim_raw = raw.get('simulation', {})
    export_raw = raw.get('export', {})

    scenario = sim_raw.get('scenario')
    if scenario is not None:
        # Relative scenario paths are resolved against the config file
        scenario = Path(scenario)
        if not scenario.is_absolute():
            scenario = Path(config_path).parent / scenario

    config = SimulationConfig(
        grid=grid,
        mdp=_parse_mdp(raw.get('mdp', {})),
        agent=_parse_agent(raw.get('agent', {})),
        max_steps=sim_raw.get('max_steps', 600),
        dt=float(sim_raw.get('dt', 1 / 60)),
        planner=sim_raw.get('planner', 'mdp'),
        scenario=scenario,
        csv_enabled=export_raw.get('csv', True),
        seed=sim_raw.get('seed')
    )
    config.validate()
    return config
