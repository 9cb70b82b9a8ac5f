import numpy as np
import pytest

from gridflow.config import MdpConfig
from gridflow.model.grid import CellType, GridWorld
from gridflow.model.mdp import ACTIONS, ValueIterationPlanner


def _heading_to_step(angle):
    """Map a cardinal angle back to its (dx, dy)."""
    for dx, dy, a in ACTIONS:
        if np.isclose(angle, a):
            return dx, dy
    raise AssertionError(f"not a cardinal heading: {angle}")


def test_goal_and_wall_terminal_values():
    grid = GridWorld(5, 5)
    grid.set_cell(4, 4, CellType.GOAL)
    grid.set_cell(2, 2, CellType.WALL)
    grid.set_cell(2, 3, CellType.WALL)
    planner = ValueIterationPlanner(grid)

    for _ in range(37):
        planner.iterate()
        values = planner.values()
        policy = planner.policy()
        assert values[grid.flat_index(4, 4)] == 10.0
        for x, y in [(2, 2), (2, 3)]:
            assert values[grid.flat_index(x, y)] == 0.0
            assert policy[grid.flat_index(x, y)] == 0.0


def test_open_grid_converges_to_shortest_path_policy():
    grid = GridWorld(5, 5)
    goal = (4, 4)
    grid.set_cell(*goal, CellType.GOAL)
    planner = ValueIterationPlanner(grid)

    for _ in range(300):
        planner.iterate()
    assert planner.last_delta < 1e-4

    policy = planner.policy()
    for y in range(5):
        for x in range(5):
            if (x, y) == goal:
                continue
            dx, dy = _heading_to_step(policy[grid.flat_index(x, y)])
            before = abs(goal[0] - x) + abs(goal[1] - y)
            after = abs(goal[0] - (x + dx)) + abs(goal[1] - (y + dy))
            assert after == before - 1, f"cell {(x, y)} points away from goal"


def test_values_increase_towards_goal():
    grid = GridWorld(6, 1)
    grid.set_cell(5, 0, CellType.GOAL)
    planner = ValueIterationPlanner(grid)
    for _ in range(100):
        planner.iterate()
    row = planner.values()
    assert all(row[i] < row[i + 1] for i in range(5))


def test_wind_cells_priced_like_empty_cells():
    calm = GridWorld(6, 6)
    windy = GridWorld(6, 6)
    for grid in (calm, windy):
        grid.set_cell(5, 5, CellType.GOAL)
        grid.set_cell(3, 2, CellType.WALL)
    windy.set_cell(2, 2, CellType.WIND)
    windy.set_wind(2, 2, 1, 0, 3)
    windy.set_cell(4, 4, CellType.WIND)
    windy.set_wind(4, 4, 0, -1, 2)

    a = ValueIterationPlanner(calm)
    b = ValueIterationPlanner(windy)
    for _ in range(40):
        a.iterate()
        b.iterate()

    assert np.array_equal(a.values(), b.values())
    assert np.array_equal(a.policy(), b.policy())


def test_equal_length_routes_through_wind_are_equal_cost():
    # Mirror-symmetric grid; only one of the two first steps is a wind cell
    grid = GridWorld(3, 3)
    grid.set_cell(2, 2, CellType.GOAL)
    grid.set_cell(0, 1, CellType.WIND)
    grid.set_wind(0, 1, 0, 1, 1)
    planner = ValueIterationPlanner(grid)
    for _ in range(100):
        planner.iterate()

    values = planner.values()
    assert np.isclose(values[grid.flat_index(0, 1)], values[grid.flat_index(1, 0)])


def test_wall_bump_penalised_on_first_sweep():
    grid = GridWorld(3, 1)
    grid.set_cell(2, 0, CellType.GOAL)
    planner = ValueIterationPlanner(grid, MdpConfig())
    planner.iterate()

    # From (0, 0) moving right: 0.8 * -0.1 + 2 * 0.1 * (-0.1 - 1.0)
    assert planner.values()[0] == pytest.approx(-0.3, abs=1e-6)
    assert planner.policy()[0] == pytest.approx(0.0)


def test_grid_edits_picked_up_on_next_sweep():
    grid = GridWorld(3, 1)
    grid.set_cell(2, 0, CellType.GOAL)
    planner = ValueIterationPlanner(grid)
    planner.iterate()

    grid.set_cell(1, 0, CellType.WALL)
    planner.iterate()
    values = planner.values()
    assert values[1] == 0.0
    assert values[0] < -1.0


def test_agent_cell_is_ignored():
    grid = GridWorld(4, 4)
    grid.set_cell(3, 3, CellType.GOAL)
    a = ValueIterationPlanner(grid)
    b = ValueIterationPlanner(grid)
    a.iterate()
    b.iterate((1, 2))
    assert np.array_equal(a.values(), b.values())


def test_reset_zeroes_arrays():
    grid = GridWorld(4, 4)
    grid.set_cell(3, 3, CellType.GOAL)
    planner = ValueIterationPlanner(grid)
    for _ in range(5):
        planner.iterate()
    planner.reset()
    assert not planner.values().any()
    assert not planner.policy().any()


def test_views_are_read_only():
    grid = GridWorld(2, 2)
    planner = ValueIterationPlanner(grid)
    planner.iterate()
    with pytest.raises(ValueError):
        planner.values()[0] = 1.0
    with pytest.raises(ValueError):
        planner.policy()[0] = 1.0


def test_arrays_are_flat_row_major():
    grid = GridWorld(4, 3)
    planner = ValueIterationPlanner(grid)
    assert planner.values().shape == (12,)
    assert planner.policy().shape == (12,)
