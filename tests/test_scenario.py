from pathlib import Path

import pytest

from gridflow.export.scenario import (ScenarioFormatError, dump_scenario,
                                      load_scenario, read_scenario,
                                      write_scenario)
from gridflow.model.grid import CellType, WindConfig

SCENARIO_DIR = Path(__file__).resolve().parent.parent / "scenarios"

SAMPLE = """\
#NAME:Sample
#CAMERA:{"alpha":1.0,"beta":0.5}
|. |B |G |
|WE3|. |. |
|C |. |WN1|
"""


def test_load_sample_layout():
    scenario = load_scenario(SAMPLE)
    grid = scenario.grid

    assert (grid.width, grid.height) == (3, 3)
    assert scenario.name == "Sample"
    assert scenario.camera == '{"alpha":1.0,"beta":0.5}'

    # First text row is the top of the world (y = 2)
    assert grid.get_cell(1, 2) == CellType.WALL
    assert grid.get_cell(2, 2) == CellType.GOAL
    assert grid.get_cell(0, 1) == CellType.WIND
    assert grid.get_wind_config(0, 1) == WindConfig(1, 0, 3)
    assert grid.get_wind_config(2, 0) == WindConfig(0, 1, 1)

    # Agent marker sits on an empty cell
    assert scenario.agent_cell == (0, 0)
    assert grid.get_cell(0, 0) == CellType.EMPTY


def test_wind_field_derived_on_load():
    scenario = load_scenario(SAMPLE)
    assert scenario.grid.wind_vector(1, 1) == (3.0, 0.0)
    assert scenario.grid.wind_vector(2, 1) == (2.0, 1.0)


def test_dump_then_load_keeps_world():
    scenario = load_scenario(SAMPLE)
    text = dump_scenario(scenario.grid, scenario.agent_cell,
                         scenario.name, scenario.camera)
    again = load_scenario(text)

    assert (again.grid.cells == scenario.grid.cells).all()
    assert again.grid.wind_configs == scenario.grid.wind_configs
    assert again.agent_cell == scenario.agent_cell
    assert again.name == scenario.name
    assert again.camera == scenario.camera


def test_dump_token_layout():
    scenario = load_scenario(SAMPLE)
    lines = dump_scenario(scenario.grid, scenario.agent_cell).splitlines()
    assert lines == [
        "|. |B |G |",
        "|WE3|. |. |",
        "|C |. |WN1|",
    ]


def test_metadata_lines_optional_and_whitespace_tolerant():
    scenario = load_scenario("\n|  G  |.|\n\n|C|B|\n")
    assert scenario.name is None
    assert scenario.camera is None
    assert scenario.grid.get_cell(0, 1) == CellType.GOAL
    assert scenario.grid.get_cell(1, 0) == CellType.WALL


@pytest.mark.parametrize("text", [
    "",
    "#NAME:only metadata\n",
    "|. |. |\n|. |\n",
    "|. |Q |\n",
    "|WX3|. |\n",
    "|WE0|. |\n",
    "|WE |. |\n",
    "|C |C |\n",
    "|. |. |\n#NAME:late\n",
])
def test_malformed_text_rejected(text):
    with pytest.raises(ScenarioFormatError):
        load_scenario(text)


def test_format_error_is_value_error():
    assert issubclass(ScenarioFormatError, ValueError)


def test_bundled_scenarios_load():
    for path in sorted(SCENARIO_DIR.glob("*.txt")):
        scenario = read_scenario(path)
        assert scenario.grid.first_goal() is not None, path.name
        assert scenario.agent_cell is not None, path.name


def test_write_then_read(tmp_path):
    scenario = load_scenario(SAMPLE)
    target = tmp_path / "nested" / "sample.txt"
    write_scenario(target, scenario)
    again = read_scenario(target)
    assert again.name == "Sample"
    assert (again.grid.cells == scenario.grid.cells).all()


def test_huge_wind_force_loads_quickly():
    scenario = load_scenario("|WE999999999|. |\n")
    assert scenario.grid.get_wind_config(0, 0).force == 999_999_999
    assert scenario.grid.wind_vector(1, 0)[0] > 0
