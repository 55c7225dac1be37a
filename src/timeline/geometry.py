"""Geometry mapper: layout-space rectangles to plane-space camera poses.

Layout (canvas) space: (0, 0) top-left, (canvas_w, canvas_h) bottom-right,
Y grows downward.

Plane space: the viewing plane centered at the origin,
(-plane_w/2, plane_h/2) top-left, (plane_w/2, -plane_h/2) bottom-right,
Y grows upward, z = 0 on the plane.
"""

from src.timeline.models import CameraPose, Vec3

DEFAULT_SOURCE_SIZE = 100

# Framing distance factor bounds (see camera_distance_for_source)
FRAMING_RATIO = 0.3
MIN_DISTANCE_FACTOR = 0.5
MAX_DISTANCE_FACTOR = 2.0


def _clamp(value, low, high):
    return max(low, min(high, value))


def canvas_to_plane(x, y, canvas_w, canvas_h, plane_w, plane_h):
    """Convert a canvas pixel coordinate to a point on the plane.

    Args:
        x: Canvas x in pixels.
        y: Canvas y in pixels.
        canvas_w: Canvas width in pixels.
        canvas_h: Canvas height in pixels.
        plane_w: Plane width in world units.
        plane_h: Plane height in world units.

    Returns:
        Vec3 on the plane (z = 0).
    """
    nx = x / canvas_w
    ny = y / canvas_h
    return Vec3(
        x=(nx - 0.5) * plane_w,
        y=(0.5 - ny) * plane_h,
        z=0.0,
    )


def plane_to_canvas(point, canvas_w, canvas_h, plane_w, plane_h):
    """Inverse of canvas_to_plane.

    Returns:
        (x, y) tuple in canvas pixels.
    """
    nx = point.x / plane_w + 0.5
    ny = 0.5 - point.y / plane_h
    return (nx * canvas_w, ny * canvas_h)


def effective_rect(node, source):
    """Rectangle a node actually covers on the canvas after scale and crop.

    Each crop inset is scaled by its own axis before being removed from the
    corresponding edge, so the visible origin shifts by the scaled left/top
    crop.

    Args:
        node: SceneNode.
        source: Source (natural size falls back to 100x100).

    Returns:
        (x, y, width, height) in canvas pixels.
    """
    source_w = (source.width if source is not None else None) or DEFAULT_SOURCE_SIZE
    source_h = (source.height if source is not None else None) or DEFAULT_SOURCE_SIZE

    crop = node.crop
    width = source_w * node.scale_x - crop.left * node.scale_x - crop.right * node.scale_x
    height = source_h * node.scale_y - crop.top * node.scale_y - crop.bottom * node.scale_y

    x = node.x + crop.left * node.scale_x
    y = node.y + crop.top * node.scale_y
    return (x, y, width, height)


def source_center_on_plane(node, source, canvas_w, canvas_h, plane_w, plane_h):
    """Center of a node's visible rectangle, in plane coordinates."""
    x, y, width, height = effective_rect(node, source)
    return canvas_to_plane(x + width / 2, y + height / 2, canvas_w, canvas_h, plane_w, plane_h)


def camera_distance_for_source(node, source, canvas_w, canvas_h, base_distance=2.0):
    """Camera distance that frames a source.

    Small sources get a larger factor, large ones a smaller one, clamped to
    [0.5, 2.0] times the base distance.

    Args:
        node: SceneNode.
        source: Source.
        canvas_w: Canvas width in pixels.
        canvas_h: Canvas height in pixels.
        base_distance: Distance for a source filling 30% of the canvas.

    Returns:
        Distance from the plane in world units.
    """
    _, _, width, height = effective_rect(node, source)
    max_ratio = max(width / canvas_w, height / canvas_h)
    if max_ratio <= 0:
        # Fully cropped away; use the upper bound
        return base_distance * MAX_DISTANCE_FACTOR
    factor = _clamp(FRAMING_RATIO / max_ratio, MIN_DISTANCE_FACTOR, MAX_DISTANCE_FACTOR)
    return base_distance * factor


def center_pose(center_distance):
    """The whole-plane view: camera on the Z axis looking at the origin."""
    return CameraPose(
        position=Vec3(0.0, 0.0, center_distance),
        target=Vec3(0.0, 0.0, 0.0),
    )


def framing_pose(node, source, canvas_w, canvas_h, plane_w, plane_h, base_distance=2.0):
    """Pose that looks straight at a source from its framing distance."""
    center = source_center_on_plane(node, source, canvas_w, canvas_h, plane_w, plane_h)
    distance = camera_distance_for_source(node, source, canvas_w, canvas_h, base_distance)
    return CameraPose(
        position=Vec3(center.x, center.y, distance),
        target=Vec3(center.x, center.y, 0.0),
    )
