#!/usr/bin/env python3
"""Write the default flocking configuration as a YAML file."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import yaml

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from flocking.sim.core.config import SimulationConfig, config_to_dict  # noqa: E402


def render_config(config: SimulationConfig) -> str:
    return yaml.safe_dump(config_to_dict(config), sort_keys=False)


def write_config(path: Path, text: str, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(f"{path} already exists. Use --overwrite to replace.")
    path.write_text(text)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Write the default flocking configuration as YAML.")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("flocking.yaml"),
        help="File to write the configuration to.",
    )
    parser.add_argument("--overwrite", action="store_true", help="Overwrite an existing file.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    output: Path = args.output
    output.parent.mkdir(parents=True, exist_ok=True)
    write_config(output, render_config(SimulationConfig()), args.overwrite)
    print(f"Wrote default config to {output}")


if __name__ == "__main__":
    main()
