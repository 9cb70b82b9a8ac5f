"""Scenario text format: load and dump painted grid worlds."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ..model.grid import CellType, GridWorld

logger = logging.getLogger(__name__)


class ScenarioFormatError(ValueError):
    """Raised when scenario text cannot be turned into a grid."""


DIRECTION_CODES = {
    'N': (0, 1),
    'E': (1, 0),
    'S': (0, -1),
    'W': (-1, 0),
}
DIRECTION_LETTERS = {v: k for k, v in DIRECTION_CODES.items()}

_WIND_TOKEN = re.compile(r'^W([NESW])(\d+)$')
TOKEN_WIDTH = 2


@dataclass
class Scenario:
    """
    A freshly built grid plus the metadata stored alongside it.

    The grid is never shared with a running engine until it is swapped in
    whole, so a bad file cannot leave a half-painted world behind.
    """
    grid: GridWorld
    agent_cell: Optional[Tuple[int, int]] = None
    name: Optional[str] = None
    camera: Optional[str] = None  # opaque, never interpreted here


def _split_row(line: str, lineno: int) -> List[str]:
    body = line.strip()
    if body.startswith('|'):
        body = body[1:]
    if body.endswith('|'):
        body = body[:-1]
    if not body:
        raise ScenarioFormatError(f"line {lineno}: empty grid row")
    return [tok.strip() for tok in body.split('|')]


def load_scenario(text: str) -> Scenario:
    """
    Parse scenario text into a new GridWorld.

    Format: optional '#NAME:' / '#CAMERA:' lines, then grid rows, top row
    first, with '|'-separated tokens:
      '.' empty, 'B' wall, 'G' goal, 'C' agent (on empty), 'W<dir><force>'.
    """
    name = None
    camera = None
    rows: List[Tuple[int, List[str]]] = []

    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.rstrip('\r\n')
        if not line.strip():
            continue
        if line.startswith('#'):
            if rows:
                raise ScenarioFormatError(
                    f"line {lineno}: metadata after grid rows")
            if line.startswith('#NAME:'):
                name = line[len('#NAME:'):].strip()
            elif line.startswith('#CAMERA:'):
                camera = line[len('#CAMERA:'):].strip()
            continue
        rows.append((lineno, _split_row(line, lineno)))

    if not rows:
        raise ScenarioFormatError("no grid rows found")

    width = len(rows[0][1])
    height = len(rows)
    for lineno, tokens in rows:
        if len(tokens) != width:
            raise ScenarioFormatError(
                f"line {lineno}: expected {width} cells, got {len(tokens)}")

    grid = GridWorld(width, height)
    agent_cell = None

    # First row is the top of the world
    for row_idx, (lineno, tokens) in enumerate(rows):
        y = height - 1 - row_idx
        for x, token in enumerate(tokens):
            if token == '.' or token == '':
                continue
            elif token == 'B':
                grid.set_cell(x, y, CellType.WALL)
            elif token == 'G':
                grid.set_cell(x, y, CellType.GOAL)
            elif token == 'C':
                if agent_cell is not None:
                    raise ScenarioFormatError(
                        f"line {lineno}: second agent marker at column {x}")
                agent_cell = (x, y)
            else:
                match = _WIND_TOKEN.match(token)
                if match is None:
                    raise ScenarioFormatError(
                        f"line {lineno}: unknown token {token!r} at column {x}")
                dx, dy = DIRECTION_CODES[match.group(1)]
                force = int(match.group(2))
                if force < 1:
                    raise ScenarioFormatError(
                        f"line {lineno}: wind force must be positive, got {force}")
                grid.set_cell(x, y, CellType.WIND)
                grid.set_wind(x, y, dx, dy, force)

    logger.debug("Loaded scenario %r (%dx%d)", name, width, height)
    return Scenario(grid=grid, agent_cell=agent_cell, name=name, camera=camera)


def _token(grid: GridWorld, x: int, y: int,
           agent_cell: Optional[Tuple[int, int]]) -> str:
    cell_type = grid.get_cell(x, y)
    if cell_type == CellType.WALL:
        return 'B'
    if cell_type == CellType.GOAL:
        return 'G'
    if cell_type == CellType.WIND:
        config = grid.get_wind_config(x, y)
        return f"W{DIRECTION_LETTERS[(config.dx, config.dy)]}{config.force}"
    if agent_cell == (x, y):
        return 'C'
    return '.'


def dump_scenario(grid: GridWorld,
                  agent_cell: Optional[Tuple[int, int]] = None,
                  name: Optional[str] = None,
                  camera: Optional[str] = None) -> str:
    """Serialize a grid (and optional agent/metadata) to scenario text."""
    lines = []
    if name is not None:
        lines.append(f"#NAME:{name}")
    if camera is not None:
        lines.append(f"#CAMERA:{camera}")

    for y in range(grid.height - 1, -1, -1):
        tokens = [_token(grid, x, y, agent_cell).ljust(TOKEN_WIDTH)
                  for x in range(grid.width)]
        lines.append('|' + '|'.join(tokens) + '|')

    return '\n'.join(lines) + '\n'


def read_scenario(path: Path) -> Scenario:
    """Load a scenario file from disk."""
    with open(path, encoding='utf-8') as f:
        return load_scenario(f.read())


def write_scenario(path: Path, scenario: Scenario) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(dump_scenario(scenario.grid, scenario.agent_cell,
                              scenario.name, scenario.camera))
