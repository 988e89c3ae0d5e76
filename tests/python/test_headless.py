import csv
import json

import pytest
import yaml

from flocking.app.headless import main, run_headless


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_basic_log_header(tmp_path):
    log_path = tmp_path / "basic.csv"
    run_headless(steps=2, seed=1, log_path=log_path, deterministic_log=True, log_format="basic", boid_count=10)
    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[0] == ["tick", "population", "interactions", "avg_speed", "tick_ms"]
    assert rows[1][0] == "1"
    assert rows[2][0] == "2"
    assert rows[1][1] == "10"


def test_headless_detailed_log_header_and_ratios(tmp_path):
    log_path = tmp_path / "detailed.csv"
    run_headless(
        steps=3,
        seed=2,
        log_path=log_path,
        deterministic_log=True,
        log_format="detailed",
        boid_count=20,
        size=(50.0, 50.0),
    )
    rows = _read_csv(log_path)
    assert len(rows) == 4
    header = rows[0]
    assert header == [
        "tick",
        "population",
        "interactions",
        "avg_speed",
        "tick_ms",
        "min_speed",
        "max_speed",
        "centroid_x",
        "centroid_y",
        "spread",
        "interactions_per_boid",
        "tick_ms_per_boid",
    ]

    idx = {name: i for i, name in enumerate(header)}
    first_row = rows[1]
    population = int(first_row[idx["population"]])
    interactions = int(first_row[idx["interactions"]])

    assert population == 20
    assert float(first_row[idx["interactions_per_boid"]]) == pytest.approx(interactions / population, abs=1e-4)
    assert float(first_row[idx["tick_ms"]]) == 0.0
    assert float(first_row[idx["min_speed"]]) <= float(first_row[idx["avg_speed"]]) <= float(first_row[idx["max_speed"]])
    assert 0.0 <= float(first_row[idx["centroid_x"]]) <= 50.0
    assert float(first_row[idx["max_speed"]]) <= 2.5 + 1e-4


def test_deterministic_logs_match_for_same_seed(tmp_path):
    log_a = tmp_path / "a.csv"
    log_b = tmp_path / "b.csv"
    run_headless(steps=5, seed=8, log_path=log_a, deterministic_log=True, boid_count=15, size=(60.0, 60.0))
    run_headless(steps=5, seed=8, log_path=log_b, deterministic_log=True, boid_count=15, size=(60.0, 60.0))
    assert log_a.read_text() == log_b.read_text()


def test_headless_summary_output(tmp_path):
    log_path = tmp_path / "summary.csv"
    summary_path = tmp_path / "summary.json"
    run_headless(
        steps=4,
        seed=3,
        log_path=log_path,
        deterministic_log=True,
        log_format="basic",
        summary_path=summary_path,
        summary_window=2,
        boid_count=8,
    )
    payload = json.loads(summary_path.read_text())
    assert payload["steps"] == 4
    assert payload["seed"] == 3
    assert payload["boid_count"] == 8
    assert payload["log_format"] == "basic"
    assert "tick_ms" in payload
    assert "average_speed" in payload
    assert "interactions" in payload
    assert payload["tail_window"]["window"] == 2


def test_headless_reads_config_file_and_cli_overrides(tmp_path):
    config_path = tmp_path / "flocking.yaml"
    config_path.write_text(yaml.safe_dump({"boid_count": 6, "width": 90, "height": 30, "seed": 5}))

    system = run_headless(steps=1, seed=None, log_path=None, config_path=config_path, size=(40.0, 20.0))

    assert system.boid_count == 6
    assert (system.width, system.height) == (40.0, 20.0)
    assert system.config.seed == 5
    assert system.tick == 1


def test_headless_rejects_unknown_log_format():
    with pytest.raises(ValueError, match="Unknown log format"):
        run_headless(steps=1, seed=1, log_path=None, log_format="verbose", boid_count=1)


def test_cli_reports_bad_config(tmp_path, capsys):
    config_path = tmp_path / "bad.yaml"
    config_path.write_text(yaml.safe_dump({"flocking": {"max_speed": -2}}))

    with pytest.raises(SystemExit) as exc_info:
        main(["--steps", "1", "--config", str(config_path)])

    assert exc_info.value.code == 2
    assert "must not be negative" in capsys.readouterr().err


def test_cli_writes_log(tmp_path):
    log_path = tmp_path / "cli.csv"

    main(["--steps", "2", "--seed", "4", "-b", "5", "--size", "30", "30", "--log", str(log_path), "--log-format", "basic"])

    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[2][1] == "5"
