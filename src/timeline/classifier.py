"""Target classifier: which scenes are high-motion and which nodes get camera focus."""

from src.timeline.models import FocusTarget

# Source types treated as focus targets unless overridden (webcams / capture cards)
DEFAULT_TARGET_TYPES = ("dshow_input", "macos_avcapture")

HIGH_MOTION_TYPES = ("game_capture",)
HIGH_MOTION_NAME_HINT = "game capture"


def index_sources(sources):
    """Map source id -> Source. Accepts a list or an existing dict."""
    if isinstance(sources, dict):
        return sources
    return {s.id: s for s in sources}


def resolve_sources(nodes, sources):
    """Pair each node with its source, dropping nodes whose source is unknown.

    Returns:
        List of (node, source) tuples in node order.
    """
    by_id = index_sources(sources)
    resolved = []
    for node in nodes:
        source = by_id.get(node.source_id)
        if source is not None:
            resolved.append((node, source))
    return resolved


def is_high_motion_scene(nodes, sources):
    """True if any resolvable source is a live/game capture.

    Matches either the source type or "game capture" in the source name.
    """
    for _, source in resolve_sources(nodes, sources):
        if source.type in HIGH_MOTION_TYPES:
            return True
        if source.name and HIGH_MOTION_NAME_HINT in source.name.lower():
            return True
    return False


def find_focus_targets(nodes, sources, overrides=None):
    """Select the nodes the camera should focus on.

    An explicit entry in `overrides` (source id -> bool) always wins.
    Without one, capture devices in DEFAULT_TARGET_TYPES are targets.
    Hidden nodes and nodes with unknown sources are never targets.

    Args:
        nodes: SceneNodes in scene order.
        sources: Sources (list or id -> Source dict).
        overrides: Optional dict of source id -> bool.

    Returns:
        List of FocusTarget, in node order.
    """
    overrides = overrides or {}
    targets = []
    for node, source in resolve_sources(nodes, sources):
        if not node.visible:
            continue
        if node.source_id in overrides:
            selected = bool(overrides[node.source_id])
        else:
            selected = source.type in DEFAULT_TARGET_TYPES
        if selected:
            targets.append(FocusTarget(node=node, source=source))
    return targets
