"""Pytest configuration and shared fixtures for jmxdoc tests.

Provides:
- Fixture file paths (legacy documents, settings TOML)
- Wire-form building blocks (channels, perturbations, trials)
- A populated sample document built through the editor
"""

import copy
from pathlib import Path
from typing import Any, Dict

import pytest

# ============================================================================
# Path Configuration
# ============================================================================


@pytest.fixture(scope="session")
def fixtures_root() -> Path:
    """Root directory containing all test fixtures."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def legacy_v1_path(fixtures_root: Path) -> Path:
    """Version-1 document with short rmv/other settings vectors."""
    return fixtures_root / "legacy_v1.jmx"


@pytest.fixture(scope="session")
def sample_config_toml(fixtures_root: Path) -> Path:
    """Library settings TOML (DEBUG logging, indent 4)."""
    return fixtures_root / "config.toml"


# ============================================================================
# Wire-Form Building Blocks
# ============================================================================

SAMPLE_CHANNELS = [
    ["hgpos", 1, 1, 0, 0, "white"],
    ["ai1", 1, 0, 100, -1, "red"],
]

SAMPLE_PERTS = [
    ["sine1", "sinusoid", 1000, 250, 0],
    ["pulse1", "pulse train", 500, 10, 50, 100],
    ["noise1", "gaussian noise", 2000, 10, 0.5, 42],
]

SAMPLE_TRIAL: Dict[str, Any] = {
    "name": "t1",
    "params": ["chancfg", "cfg1", "wt", 2, "startseg", 1],
    "perts": [["sine1", 10.0, 1, 1, "winH"]],
    "tgts": ["SetA/fp", "CHAIR"],
    "tags": [["fixate", 1, 1]],
    "rvs": [["uniform", 1, 0, 10], ["function", "2*x0"]],
    "rvuse": [[1, "mindur", 2, 0], [2, "hpos", 1, 1]],
    "segs": [
        {"hdr": ["dur", [500, 500], "fix1", 1], "traj": [["on", 1, "pos", [0, 0]], ["on", 0]]},
        {"hdr": ["dur", [200, 400]], "traj": [["on", 1, "vel", [10, 0]], []]},
    ],
}


def minimal_trial(name: str = "tmin", tgts=("CHAIR",), n_segs: int = 1) -> Dict[str, Any]:
    """Smallest valid trial in wire form: default params, one empty trajectory per target."""
    return {
        "name": name,
        "tgts": list(tgts),
        "segs": [{"hdr": [], "traj": [[] for _ in tgts]} for _ in range(n_segs)],
    }


@pytest.fixture
def make_trial():
    """Factory for minimal wire-form trials (see minimal_trial)."""
    return minimal_trial


@pytest.fixture
def sample_trial_wire() -> Dict[str, Any]:
    """Fresh copy of the fully featured sample trial (safe to modify)."""
    return copy.deepcopy(SAMPLE_TRIAL)


@pytest.fixture
def base_document():
    """Document holding the channel config, perturbations and target set the sample trial needs."""
    from jmxdoc import editor
    from jmxdoc.domain import Document

    doc = Document()
    doc = editor.upsert_channel_config(doc, "cfg1", SAMPLE_CHANNELS)
    for pert in SAMPLE_PERTS:
        doc = editor.upsert_perturbation(doc, pert)
    doc = editor.add_target_set(doc, "SetA")
    doc = editor.upsert_target(doc, "SetA", "fp", "spot", ["dim", [0.5, 0.5, 0.1, 0.1]])
    doc = editor.upsert_target(doc, "SetA", "grat", "grating", ["grat1", [0x808080, 0x646464, 1.0, 0, 0]])
    doc = editor.upsert_target(doc, "SetA", "dots", "dotpatch", ["ndots", 200, "aperture", "elliptical"])
    doc = editor.add_trial_set(doc, "Main")
    return doc


@pytest.fixture
def sample_document(base_document, sample_trial_wire):
    """Fully populated document: trials in a set and in a subset."""
    from jmxdoc import editor

    doc = editor.upsert_trial(base_document, "Main", sample_trial_wire)
    doc = editor.add_trial_subset(doc, "Main", "Sub")
    doc = editor.upsert_trial(doc, "Main", minimal_trial("t2", tgts=("SetA/dots",)), subset="Sub")
    doc = editor.upsert_trial(doc, "Main", minimal_trial("t3"))
    return doc


@pytest.fixture
def tmp_jmx_path(tmp_path: Path) -> Path:
    """Writable .jmx path inside a temporary directory."""
    return tmp_path / "experiment.jmx"
