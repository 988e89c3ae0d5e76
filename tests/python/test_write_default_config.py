from __future__ import annotations

import subprocess
import sys
from pathlib import Path

from flocking.sim.core.config import SimulationConfig

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "write_default_config.py"


def _run(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, str(SCRIPT), *args],
        capture_output=True,
        text=True,
    )


def test_writes_loadable_default_config(tmp_path: Path) -> None:
    output = tmp_path / "conf" / "flocking.yaml"

    result = _run("--output", str(output))

    assert result.returncode == 0, result.stderr
    assert "Wrote default config" in result.stdout
    assert SimulationConfig.from_yaml(output) == SimulationConfig()


def test_refuses_to_overwrite_without_flag(tmp_path: Path) -> None:
    output = tmp_path / "flocking.yaml"
    output.write_text("boid_count: 3\n")

    refused = _run("--output", str(output))
    assert refused.returncode != 0
    assert "already exists" in refused.stderr
    assert output.read_text() == "boid_count: 3\n"

    replaced = _run("--output", str(output), "--overwrite")
    assert replaced.returncode == 0, replaced.stderr
    assert SimulationConfig.from_yaml(output).boid_count == 1000
