"""Shared test fixtures for the camera timeline test suite."""

import shutil
import tempfile

import numpy as np
import pytest

from src.timeline.models import Crop, Scene, SceneNode, Source


@pytest.fixture
def tmp_dir():
    """Create a temporary directory that's cleaned up after the test."""
    d = tempfile.mkdtemp()
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def rng():
    """Seeded random generator so compiled timelines are reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def sources():
    """A small source catalog: one of each interesting type."""
    return [
        Source(id="bg", type="image_source", name="Background", width=1920, height=1080),
        Source(id="game", type="game_capture", name="Game Capture", width=1920, height=1080),
        Source(id="webcam", type="dshow_input", name="Webcam", width=1920, height=1080),
        Source(id="card", type="macos_avcapture", name="Capture Card", width=1280, height=720),
        Source(id="overlay", type="browser_source", name="Alerts", width=800, height=600),
    ]


@pytest.fixture
def webcam_node():
    """Bottom-right webcam, quarter scale, cropped on three sides."""
    return SceneNode(
        source_id="webcam",
        x=1440, y=780,
        scale_x=0.25, scale_y=0.25,
        crop=Crop(top=40, left=80, right=80, bottom=0),
    )


@pytest.fixture
def scene_catalog(webcam_node):
    """Three scenes: no targets, one target (gameplay), two targets."""
    return [
        Scene(id="s-start", name="Starting Soon", nodes=(
            SceneNode(source_id="bg"),
        )),
        Scene(id="s-game", name="Gameplay", nodes=(
            SceneNode(source_id="game"),
            webcam_node,
            SceneNode(source_id="overlay", type="folder"),
        )),
        Scene(id="s-chat", name="Just Chatting", nodes=(
            SceneNode(source_id="webcam", x=160, y=90, scale_x=0.5, scale_y=0.5),
            SceneNode(source_id="card", x=1100, y=540, scale_x=0.35, scale_y=0.35),
            SceneNode(source_id="webcam", display="vertical"),
        )),
    ]
