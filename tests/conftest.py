"""Shared fixtures for the battleship GA tests."""

import numpy as np
import pytest

from chromosome import PlacementGenome

# (x, y, horizontal) per fleet slot, lengths [4,3,3,2,2,2,1,1,1,1]
VALID_SHIPS = [
    (0, 0, 1), (5, 0, 1), (0, 2, 1), (4, 2, 1), (7, 2, 1),
    (0, 4, 1), (3, 4, 1), (5, 4, 1), (7, 4, 1), (9, 4, 1),
]


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def valid_genome():
    return PlacementGenome.from_ships(VALID_SHIPS)


@pytest.fixture
def isolated_paths(tmp_path, monkeypatch):
    """Point every output path in config at a temporary directory."""
    import config
    ckpt, logs, results = tmp_path / "checkpoints", tmp_path / "logs", tmp_path / "results"
    paths = {
        "CKPT_DIR":             ckpt,
        "LOG_DIR":              logs,
        "RESULTS_DIR":          results,
        "PLACEMENT_STATE_FILE": ckpt / "placement_ga_state.dat",
        "WEIGHT_STATE_FILE":    ckpt / "weight_ga_state.dat",
        "PLACEMENT_LOG_FILE":   logs / "placement_ga_log.csv",
        "WEIGHT_LOG_FILE":      logs / "weight_ga_log.csv",
        "PLACEMENTS_FILE":      results / "best_placements.bin",
        "BEST_PLACEMENT_FILE":  results / "best_placement.txt",
        "WEIGHTS_FILE":         results / "best_weights.bin",
    }
    for name, path in paths.items():
        monkeypatch.setattr(config, name, str(path))
    return {name: str(path) for name, path in paths.items()}
