"""Timeline storage: JSON hand-off between the compiling and playing contexts."""

import json
import os

from src.timeline.models import Scene, Source, Timeline

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "data")
TIMELINE_FILE = os.path.join(DATA_DIR, "camera_timeline.json")


def dumps_timeline(timeline):
    """Serialize a timeline to a JSON string (e.g. for a message channel)."""
    return json.dumps(timeline.to_dict())


def loads_timeline(text):
    """Rebuild a timeline from dumps_timeline output."""
    return Timeline.from_dict(json.loads(text))


def save_timeline(timeline, path=None):
    """Write a timeline to disk.

    Args:
        timeline: Timeline to save.
        path: Destination file. Defaults to data/camera_timeline.json.

    Returns:
        The path written.
    """
    path = path or TIMELINE_FILE
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w") as f:
        json.dump(timeline.to_dict(), f, indent=2)
    return path


def load_timeline(path=None):
    """Load a timeline written by save_timeline."""
    path = path or TIMELINE_FILE
    with open(path, "r") as f:
        return Timeline.from_dict(json.load(f))


def load_catalog(path):
    """Load a scene/source catalog exported by the scene-graph owner.

    Expected shape:
        {"scenes": [{"id", "name", "nodes": [...]}, ...],
         "sources": [{"id", "type", "name", "size": {"width", "height"}}, ...]}

    Returns:
        (scenes, sources): lists of Scene and Source.
    """
    with open(path, "r") as f:
        data = json.load(f)
    scenes = [Scene.from_dict(s) for s in data.get("scenes", [])]
    sources = [Source.from_dict(s) for s in data.get("sources", [])]
    return scenes, sources
