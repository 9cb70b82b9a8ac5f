"""Trajectory CSV export for gridflow runs."""

import csv
from pathlib import Path
from typing import Callable, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..model.state import TickState


# Column name -> value taken from one tick
COLUMNS: Dict[str, Callable[["TickState"], object]] = {
    'step': lambda s: s.step,
    'planner': lambda s: s.planner,
    'x': lambda s: round(s.agent.x, 4),
    'y': lambda s: round(s.agent.y, 4),
    'cell_x': lambda s: s.agent.cell_x,
    'cell_y': lambda s: s.agent.cell_y,
    'stopped': lambda s: int(s.agent.stopped),
    'stop_reason': lambda s: s.agent.stop_reason,
    'wind': lambda s: round(s.metrics.get('wind_magnitude', 0.0), 4),
}
FIELDNAMES = list(COLUMNS)


def trajectory_row(state: "TickState") -> Dict[str, object]:
    """One CSV row for a tick, keyed by FIELDNAMES."""
    return {name: column(state) for name, column in COLUMNS.items()}


class CSVWriter:
    """
    Streams one row per tick to a trajectory CSV.

    Output format:
        step,planner,x,y,cell_x,cell_y,stopped,stop_reason,wind
        1,mdp,0.6333,0.5012,0,0,0,none,0.0
        ...

    The file is opened lazily on the first append if open() was not called.
    """

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)
        self.file = None
        self.writer: Optional[csv.DictWriter] = None
        self.rows_written = 0

    def open(self) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.file = open(self.output_path, 'w', newline='')
        self.writer = csv.DictWriter(self.file, fieldnames=FIELDNAMES)
        self.writer.writeheader()
        self.rows_written = 0

    def append(self, state: "TickState") -> None:
        if self.writer is None:
            self.open()
        self.writer.writerow(trajectory_row(state))
        self.rows_written += 1
        self.file.flush()

    def close(self) -> None:
        if self.file:
            self.file.close()
            self.file = None
            self.writer = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
