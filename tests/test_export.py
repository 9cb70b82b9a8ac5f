import csv
from pathlib import Path

from gridflow.config import SimulationConfig
from gridflow.export.csv_writer import FIELDNAMES, CSVWriter, trajectory_row
from gridflow.export.reporter import Reporter, compare
from gridflow.export.scenario import load_scenario
from gridflow.main import main
from gridflow.model.engine import SimulationEngine
from gridflow.model.planner import PlannerMode

CORRIDOR = "#NAME:Corridor\n|C |. |. |G |\n"


def _finished_run(mode):
    engine = SimulationEngine(SimulationConfig(seed=3, max_steps=100))
    engine.load_scenario(load_scenario(CORRIDOR))
    engine.select_planner(mode)
    states = []
    while not engine.is_finished():
        states.append(engine.step())
    return states


def test_csv_writer_one_row_per_tick(tmp_path):
    states = _finished_run(PlannerMode.ASTAR)
    path = tmp_path / "out" / "log.csv"
    with CSVWriter(path) as writer:
        for state in states:
            writer.append(state)

    with open(path, newline='') as f:
        rows = list(csv.DictReader(f))

    assert list(rows[0].keys()) == FIELDNAMES
    assert len(rows) == len(states)
    assert rows[-1]['stop_reason'] == "goal"
    assert rows[-1]['planner'] == "astar"


def test_reporter_summary_and_outcome():
    states = _finished_run(PlannerMode.ASTAR)
    reporter = Reporter("astar", "corridor.txt", 3)
    for state in states:
        reporter.update(state)

    outcome = reporter.outcome(states[-1])
    assert outcome['outcome'] == "goal"
    assert outcome['replans'] >= 3  # one per cell entered

    text = reporter.generate_summary(states[-1], Path("out"), csv_enabled=False)
    assert "ASTAR" in text
    assert "Outcome:               goal" in text
    assert "(disabled)" in text


def test_compare_table_lists_each_planner():
    outcomes = []
    for mode in (PlannerMode.ASTAR, PlannerMode.MDP):
        states = _finished_run(mode)
        reporter = Reporter(mode.value, None, 3)
        for state in states:
            reporter.update(state)
        outcomes.append(reporter.outcome(states[-1]))

    table = compare(outcomes)
    assert "astar" in table
    assert "mdp" in table
    assert table.count("goal") == 2


def _config(tmp_path, scenario_text=CORRIDOR):
    scenario = tmp_path / "corridor.txt"
    scenario.write_text(scenario_text)
    config = tmp_path / "config.yaml"
    config.write_text(
        "grid: {width: 4, height: 1}\n"
        "simulation: {max_steps: 100, planner: both, scenario: corridor.txt}\n"
    )
    return config


def test_cli_runs_both_planners(tmp_path, capsys):
    code = main(["--config", str(_config(tmp_path)), "--out-dir", str(tmp_path / "out"),
                 "--seed", "5"])
    assert code == 0
    out = capsys.readouterr().out
    assert "PLANNER COMPARISON" in out
    assert (tmp_path / "out" / "trajectory_mdp.csv").exists()
    assert (tmp_path / "out" / "trajectory_astar.csv").exists()


def test_cli_quiet_no_csv(tmp_path, capsys):
    code = main(["--config", str(_config(tmp_path)), "--out-dir", str(tmp_path / "out"),
                 "--planner", "mdp", "--no-csv", "--quiet"])
    assert code == 0
    assert capsys.readouterr().out == ""
    assert not (tmp_path / "out").exists()


def test_cli_reports_bad_inputs(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 1
    assert main(["--config", str(_config(tmp_path, "|Z |\n")), "--quiet"]) == 1
    err = capsys.readouterr().err
    assert "Configuration file not found" in err
    assert "Error loading scenario" in err


def test_trajectory_row_follows_fieldnames():
    states = _finished_run(PlannerMode.MDP)
    row = trajectory_row(states[0])
    assert list(row) == FIELDNAMES
    assert row['step'] == 1
    assert row['planner'] == "mdp"
    assert row['stopped'] in (0, 1)
