import os

import pytest

from fsm_core.graph import Node, TimeMarker, Transition

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SCRIPTS_DIR = os.path.join(REPO_ROOT, "scripts")


@pytest.fixture
def sample_paths():
    return (
        os.path.join(SCRIPTS_DIR, "sample_observations.json"),
        os.path.join(SCRIPTS_DIR, "sample_transitions.json"),
    )


@pytest.fixture
def markers():
    return [
        TimeMarker(0.0, Node("A")),
        TimeMarker(0.0, Node("B", x=220.0)),
        TimeMarker(5.0, Node("C", x=440.0)),
        TimeMarker(10.0, Node("D", x=660.0)),
    ]


@pytest.fixture
def transitions():
    return [
        Transition("A", "B", "x"),
        Transition("A", "B", "x"),
        Transition("A", "B", "y"),
        Transition("B", "A", "back"),
        Transition("B", "C", "next"),
        Transition("C", "D", "next"),
    ]
