"""Summary report generation for gridflow simulations."""

from typing import List, Dict, Optional, TYPE_CHECKING
from pathlib import Path

if TYPE_CHECKING:
    from ..model.state import TickState


class Reporter:
    """Accumulates per-tick metrics for one run and formats a text report."""

    def __init__(self, planner: str, scenario: Optional[str], seed: Optional[int]):
        self.planner = planner
        self.scenario = scenario
        self.seed = seed
        self.wind_ticks = 0
        self.peak_wind = 0.0
        self.replans = 0
        self._prev_searches = 0

    def update(self, state: "TickState") -> None:
        """Accumulate metrics per step."""
        wind = state.metrics.get('wind_magnitude', 0.0)
        if wind > 0:
            self.wind_ticks += 1
        if wind > self.peak_wind:
            self.peak_wind = wind

        searches = state.metrics.get('astar_searches', 0)
        if searches > self._prev_searches:
            self.replans += searches - self._prev_searches
        self._prev_searches = searches

    def outcome(self, final_state: "TickState") -> Dict:
        """Condensed result used by the single-run and comparison reports."""
        return {
            'planner': self.planner,
            'steps': final_state.step,
            'outcome': final_state.agent.stop_reason,
            'distance': final_state.metrics.get('distance', 0.0),
            'wind_ticks': self.wind_ticks,
            'replans': self.replans,
            'final_cell': (final_state.agent.cell_x, final_state.agent.cell_y),
        }

    def generate_summary(self, final_state: "TickState",
                         output_dir: Path,
                         csv_enabled: bool) -> str:
        """Returns formatted text report."""
        result = self.outcome(final_state)
        outcome = result['outcome']
        if outcome == 'none':
            outcome = 'still running (step limit)'

        lines = [
            "",
            "=" * 80,
            f"                    GRIDFLOW RUN REPORT ({self.planner.upper()})",
            "=" * 80,
            f"Scenario: {self.scenario or '(empty grid)'}",
            f"Random Seed: {self.seed if self.seed is not None else 'None (random)'}",
            "",
            "RUN METRICS",
            "-" * 40,
            f"Total Steps:           {result['steps']}",
            f"Outcome:               {outcome}",
            f"Final Cell:            {result['final_cell']}",
            f"Distance Travelled:    {result['distance']:.2f} cells",
            f"Ticks In Wind:         {self.wind_ticks}",
            f"Peak Wind Felt:        {self.peak_wind:.2f}",
        ]
        if self.planner == 'astar':
            lines.append(f"Replans:               {self.replans}")
        else:
            lines.append(f"Bellman Sweeps:        {int(final_state.metrics.get('mdp_sweeps', 0))}")

        lines += [
            "",
            "OUTPUT FILES",
            "-" * 40,
        ]
        if csv_enabled:
            lines.append(f"CSV Log:    {output_dir / f'trajectory_{self.planner}.csv'}")
        else:
            lines.append("CSV Log:    (disabled)")

        lines.append("=" * 80)

        return "\n".join(lines)


def compare(outcomes: List[Dict]) -> str:
    """Side-by-side table of run outcomes, one row per planner."""
    lines = [
        "",
        "PLANNER COMPARISON",
        "-" * 64,
        f"{'Planner':<10}{'Outcome':<10}{'Steps':>8}{'Distance':>12}"
        f"{'Wind ticks':>12}{'Replans':>10}",
    ]
    for o in outcomes:
        lines.append(
            f"{o['planner']:<10}{o['outcome']:<10}{o['steps']:>8}"
            f"{o['distance']:>12.2f}{o['wind_ticks']:>12}{o['replans']:>10}"
        )
    lines.append("-" * 64)
    return "\n".join(lines)
