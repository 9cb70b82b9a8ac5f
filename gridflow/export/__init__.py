"""I/O package for gridflow."""

from .csv_writer import CSVWriter
from .reporter import Reporter, compare
from .scenario import (Scenario, ScenarioFormatError, load_scenario,
                       dump_scenario, read_scenario, write_scenario)

__all__ = [
    'CSVWriter',
    'Reporter',
    'compare',
    'Scenario',
    'ScenarioFormatError',
    'load_scenario',
    'dump_scenario',
    'read_scenario',
    'write_scenario',
]
