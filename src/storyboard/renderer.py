"""Storyboard renderer: a visual grid of the camera plan, one cell per scene."""

import os

from PIL import Image, ImageDraw, ImageFont

from src.timeline.classifier import find_focus_targets, index_sources
from src.timeline.compiler import scene_nodes
from src.timeline.geometry import effective_rect, plane_to_canvas

# Storyboard layout
THUMB_WIDTH = 384
THUMB_HEIGHT = 216
COLUMNS = 3
PADDING = 20
LABEL_HEIGHT = 50
TITLE_HEIGHT = 40
BG_COLOR = (30, 30, 50)
CANVAS_COLOR = (12, 12, 24)
LABEL_BG = (20, 20, 40)
TEXT_COLOR = (255, 255, 255)
NODE_COLOR = (110, 110, 140)
TARGET_COLOR = (255, 190, 60)
LOOK_AT_COLOR = (90, 200, 255)
MARKER_RADIUS = 4


def render_timeline_storyboard(timeline, scene_data, sources, display_channel,
                               canvas_w, canvas_h, output_dir, scene_ids=None, overrides=None):
    """Generate a storyboard image grid from a compiled timeline.

    Each cell shows:
    - Every node rectangle of the scene (focus targets highlighted)
    - The look-at point of every animate segment, numbered in play order
    - Scene name, start time and segment count

    Args:
        timeline: Compiled Timeline.
        scene_data: Scene catalog used to compile it (list or id -> Scene dict).
        sources: Source catalog (list or id -> Source dict).
        display_channel: Display channel the timeline was built for.
        canvas_w: Layout canvas width in pixels.
        canvas_h: Layout canvas height in pixels.
        output_dir: Directory to save the storyboard image.
        scene_ids: Scene ids in timeline order. Defaults to matching
            timeline entries to scene_data by name.
        overrides: Focus overrides the timeline was built with.

    Returns:
        Path to the storyboard PNG, or None if the timeline has no scenes.
    """
    entries = list(timeline.scenes)
    if not entries:
        return None
    os.makedirs(output_dir, exist_ok=True)

    font = ImageFont.load_default()
    source_index = index_sources(sources)
    scenes = list(scene_data.values()) if isinstance(scene_data, dict) else list(scene_data)
    if scene_ids is None:
        by_name = {s.name: s.id for s in scenes}
        scene_ids = [by_name.get(e.name) for e in entries]

    rows = (len(entries) + COLUMNS - 1) // COLUMNS
    grid_width = COLUMNS * (THUMB_WIDTH + PADDING) + PADDING
    grid_height = rows * (THUMB_HEIGHT + LABEL_HEIGHT + PADDING) + PADDING + TITLE_HEIGHT

    storyboard = Image.new("RGB", (grid_width, grid_height), BG_COLOR)
    draw = ImageDraw.Draw(storyboard)
    title = f"Camera timeline: {len(entries)} scenes, mode={timeline.target_behavior}"
    draw.text((PADDING, PADDING), title, fill=TEXT_COLOR, font=font)

    for i, entry in enumerate(entries):
        col = i % COLUMNS
        row = i // COLUMNS
        x = PADDING + col * (THUMB_WIDTH + PADDING)
        y = TITLE_HEIGHT + PADDING + row * (THUMB_HEIGHT + LABEL_HEIGHT + PADDING)

        nodes = scene_nodes(scene_ids[i], scene_data, display_channel) if scene_ids[i] else []
        thumb = _render_scene_thumbnail(entry, nodes, source_index, overrides, timeline, canvas_w, canvas_h)
        storyboard.paste(thumb, (x, y))

        label_y = y + THUMB_HEIGHT
        draw.rectangle([x, label_y, x + THUMB_WIDTH, label_y + LABEL_HEIGHT], fill=LABEL_BG)
        draw.text((x + 5, label_y + 5), entry.name[:40], fill=TEXT_COLOR, font=font)
        details = f"@{entry.start_time_ms / 1000:.1f}s  {len(entry.segments)} segments"
        if entry.is_high_motion:
            details += "  [live]"
        draw.text((x + 5, label_y + 25), details, fill=TEXT_COLOR, font=font)

    output_path = os.path.join(output_dir, "camera_storyboard.png")
    storyboard.save(output_path)
    return output_path


def _render_scene_thumbnail(entry, nodes, source_index, overrides, timeline, canvas_w, canvas_h):
    """Render a single scene cell (THUMB_WIDTH x THUMB_HEIGHT)."""
    thumb = Image.new("RGB", (THUMB_WIDTH, THUMB_HEIGHT), CANVAS_COLOR)
    draw = ImageDraw.Draw(thumb)
    sx = THUMB_WIDTH / canvas_w
    sy = THUMB_HEIGHT / canvas_h

    targets = find_focus_targets(nodes, source_index, overrides) if entry.has_focus_target else []
    target_nodes = {id(t.node) for t in targets}
    for node in nodes:
        source = source_index.get(node.source_id)
        if source is None:
            continue
        rx, ry, rw, rh = effective_rect(node, source)
        box = [rx * sx, ry * sy, (rx + max(rw, 0)) * sx, (ry + max(rh, 0)) * sy]
        color = TARGET_COLOR if id(node) in target_nodes else NODE_COLOR
        draw.rectangle(box, outline=color, width=2 if color == TARGET_COLOR else 1)

    step = 0
    for segment in entry.segments:
        if segment.type != "animate":
            continue
        step += 1
        cx, cy = plane_to_canvas(segment.end.target, canvas_w, canvas_h,
                                 timeline.plane_width, timeline.plane_height)
        px, py = cx * sx, cy * sy
        draw.ellipse(
            [px - MARKER_RADIUS, py - MARKER_RADIUS, px + MARKER_RADIUS, py + MARKER_RADIUS],
            outline=LOOK_AT_COLOR,
        )
        draw.text((px + MARKER_RADIUS + 2, py - MARKER_RADIUS * 2), str(step), fill=LOOK_AT_COLOR)

    return thumb
