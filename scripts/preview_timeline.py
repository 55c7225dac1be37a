"""Compile a camera timeline from a scene catalog and preview it offline.

Steps:
1. Load settings (config/camera_timeline.yaml + .env) and the scene catalog
2. Build the timeline and check its timing invariants
3. Save the timeline JSON and render a storyboard PNG
4. Simulate playback against a headless camera

Usage:
    python scripts/preview_timeline.py [catalog.json] [seed]
"""

import asyncio
import logging
import os
import sys

# Add project root to path so we can import src modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import numpy as np

from src.playback.controller import InMemoryCameraController
from src.playback.player import play_timeline
from src.playback.tasks import playback_from_config
from src.storyboard.renderer import render_timeline_storyboard
from src.timeline.compiler import build_timeline_from_config, validate_timeline
from src.timeline.config import load_timeline_config
from src.timeline.store import load_catalog, save_timeline

DEFAULT_CATALOG = os.path.join(os.path.dirname(__file__), "..", "data", "sample_catalog.json")
OUTPUT_DIR = os.path.join(os.path.dirname(__file__), "..", "output", "timeline_preview")


def print_step(step_num, message):
    print(f"\n{'='*60}")
    print(f"  STEP {step_num}: {message}")
    print(f"{'='*60}\n")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    catalog_path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CATALOG
    seed = int(sys.argv[2]) if len(sys.argv) > 2 else None

    print_step(1, "Loading settings and catalog")
    config = load_timeline_config()
    scenes, sources = load_catalog(catalog_path)
    print(f"  Catalog: {os.path.abspath(catalog_path)}")
    print(f"  Scenes: {len(scenes)}  Sources: {len(sources)}")
    print(f"  Mode: {config.target_behavior}  Scene duration: {config.scene_duration_ms:.0f}ms")

    print_step(2, "Building timeline")
    timeline = build_timeline_from_config(config, scenes, scenes, sources, rng=np.random.default_rng(seed))
    for entry in timeline.scenes:
        kinds = " ".join(f"{s.type}:{s.duration_ms:.0f}" for s in entry.segments)
        print(f"  {entry.name} @{entry.start_time_ms:.0f}ms  targets={entry.has_focus_target}  {kinds}")
    is_valid, errors = validate_timeline(timeline, config.scene_duration_ms)
    if not is_valid:
        for e in errors:
            print(f"  ERROR: {e}")
        return 1
    print("\n  Timeline OK")

    print_step(3, "Saving timeline and storyboard")
    os.makedirs(OUTPUT_DIR, exist_ok=True)
    json_path = save_timeline(timeline, os.path.join(OUTPUT_DIR, "camera_timeline.json"))
    board_path = render_timeline_storyboard(
        timeline, scenes, sources, config.display_channel,
        config.canvas_width, config.canvas_height, OUTPUT_DIR,
        scene_ids=[s.id for s in scenes], overrides=config.overrides,
    )
    print(f"  Timeline: {os.path.abspath(json_path)}")
    print(f"  Storyboard: {os.path.abspath(board_path) if board_path else 'n/a'}")

    print_step(4, "Simulating playback")
    camera = InMemoryCameraController(record=False)
    token, clock = playback_from_config(config, simulated=True)
    played = asyncio.run(play_timeline(camera, timeline, token, clock, follow_schedule=True))
    print(f"  Played {played}/{len(timeline.scenes)} scenes in {clock.now_ms() / 1000:.1f}s simulated")
    print(f"  Final pose: {camera.pose}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
