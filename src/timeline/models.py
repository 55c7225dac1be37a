"""Timeline data model: scene catalog types plus the compiled, serializable plan.

Everything a Timeline holds is a plain value: no controller handles, no
callbacks. `to_dict()` output is JSON-safe so a timeline built in one
process can be replayed in another with `Timeline.from_dict()`.

Catalog types (Source, SceneNode, Scene) accept the scene-graph owner's
JSON shape directly, e.g.:

    {"sourceId": "cam1", "display": "horizontal", "visible": true,
     "transform": {"position": {"x": 0, "y": 0}, "scale": {"x": 1, "y": 1},
                   "crop": {"top": 0, "left": 0, "right": 0, "bottom": 0}}}
"""

from dataclasses import dataclass, field

ANIMATE = "animate"
WAIT = "wait"

GROUP_NODE_TYPE = "folder"


@dataclass(frozen=True)
class Vec3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_dict(self):
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            x=float(data.get("x", 0.0)),
            y=float(data.get("y", 0.0)),
            z=float(data.get("z", 0.0)),
        )


@dataclass(frozen=True)
class CameraPose:
    """World position of the camera and the point it looks at."""

    position: Vec3
    target: Vec3

    def to_dict(self):
        return {"position": self.position.to_dict(), "target": self.target.to_dict()}

    @classmethod
    def from_dict(cls, data):
        return cls(
            position=Vec3.from_dict(data.get("position")),
            target=Vec3.from_dict(data.get("target")),
        )


# ---------------------------------------------------------------------------
# Scene catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Source:
    id: str
    type: str = ""
    name: str = ""
    width: float = None
    height: float = None

    @classmethod
    def from_dict(cls, data):
        size = data.get("size") or {}
        return cls(
            id=data["id"],
            type=data.get("type", ""),
            name=data.get("name", ""),
            width=size.get("width", data.get("width")),
            height=size.get("height", data.get("height")),
        )


@dataclass(frozen=True)
class Crop:
    top: float = 0.0
    left: float = 0.0
    right: float = 0.0
    bottom: float = 0.0


@dataclass(frozen=True)
class SceneNode:
    """A placement of a source inside a scene, in layout (canvas pixel) space."""

    source_id: str
    x: float = 0.0
    y: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    crop: Crop = field(default_factory=Crop)
    visible: bool = True
    display: str = "horizontal"
    type: str = "item"

    @property
    def is_group(self):
        return self.type == GROUP_NODE_TYPE

    @classmethod
    def from_dict(cls, data):
        transform = data.get("transform") or {}
        position = transform.get("position") or {}
        scale = transform.get("scale") or {}
        crop = transform.get("crop") or {}
        # Zero and missing values both mean "no scale" in the catalog format
        return cls(
            source_id=data.get("sourceId", data.get("source_id")),
            x=position.get("x") or 0.0,
            y=position.get("y") or 0.0,
            scale_x=scale.get("x") or 1.0,
            scale_y=scale.get("y") or 1.0,
            crop=Crop(
                top=crop.get("top") or 0.0,
                left=crop.get("left") or 0.0,
                right=crop.get("right") or 0.0,
                bottom=crop.get("bottom") or 0.0,
            ),
            visible=bool(data.get("visible", True)),
            display=data.get("display", "horizontal"),
            type=data.get("type", "item"),
        )


@dataclass(frozen=True)
class Scene:
    id: str
    name: str = ""
    nodes: tuple = ()

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            nodes=tuple(SceneNode.from_dict(n) for n in data.get("nodes", [])),
        )


@dataclass(frozen=True)
class FocusTarget:
    node: SceneNode
    source: Source


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


class _FromCurrentPose:
    """Marker for an animate start pose read from the controller at playback time."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "FROM_CURRENT_POSE"

    def __reduce__(self):
        return (_FromCurrentPose, ())


FROM_CURRENT_POSE = _FromCurrentPose()


def _start_to_dict(start):
    if start is FROM_CURRENT_POSE:
        return {"kind": "current"}
    return {"kind": "literal", **start.to_dict()}


def _start_from_dict(data):
    if data.get("kind") == "current":
        return FROM_CURRENT_POSE
    return CameraPose.from_dict(data)


@dataclass(frozen=True)
class AnimateSegment:
    """Eased move from `start` to `end`.

    `start` is either a literal CameraPose or FROM_CURRENT_POSE.
    """

    duration_ms: float
    start: object
    end: CameraPose
    easing: str

    type = ANIMATE

    @property
    def from_current(self):
        return self.start is FROM_CURRENT_POSE

    def to_dict(self):
        return {
            "type": ANIMATE,
            "duration_ms": self.duration_ms,
            "start": _start_to_dict(self.start),
            "end": self.end.to_dict(),
            "easing": self.easing,
        }


@dataclass(frozen=True)
class WaitSegment:
    duration_ms: float

    type = WAIT

    def to_dict(self):
        return {"type": WAIT, "duration_ms": self.duration_ms}


@dataclass(frozen=True)
class UnknownSegment:
    """A segment kind this build does not understand. Kept so playback can skip it."""

    type: str
    data: dict = field(default_factory=dict)

    @property
    def duration_ms(self):
        return 0.0

    def to_dict(self):
        return dict(self.data)


def segment_from_dict(data):
    kind = data.get("type")
    if kind == ANIMATE:
        return AnimateSegment(
            duration_ms=float(data.get("duration_ms", 0.0)),
            start=_start_from_dict(data.get("start") or {"kind": "current"}),
            end=CameraPose.from_dict(data["end"]),
            easing=data.get("easing", ""),
        )
    if kind == WAIT:
        return WaitSegment(duration_ms=float(data.get("duration_ms", 0.0)))
    return UnknownSegment(type=str(kind), data=dict(data))


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SceneEntry:
    name: str
    start_time_ms: float
    is_high_motion: bool
    has_focus_target: bool
    target_behavior: str
    segments: tuple = ()

    @property
    def total_duration_ms(self):
        return sum(s.duration_ms for s in self.segments)

    def to_dict(self):
        return {
            "name": self.name,
            "start_time_ms": self.start_time_ms,
            "is_high_motion": self.is_high_motion,
            "has_focus_target": self.has_focus_target,
            "target_behavior": self.target_behavior,
            "segments": [s.to_dict() for s in self.segments],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=data.get("name", ""),
            start_time_ms=float(data.get("start_time_ms", 0.0)),
            is_high_motion=bool(data.get("is_high_motion", False)),
            has_focus_target=bool(data.get("has_focus_target", False)),
            target_behavior=data.get("target_behavior", "zoom"),
            segments=tuple(segment_from_dict(s) for s in data.get("segments", [])),
        )


@dataclass(frozen=True)
class Timeline:
    plane_width: float
    plane_height: float
    center_distance: float
    target_behavior: str
    scenes: tuple = ()

    def to_dict(self):
        return {
            "plane_width": self.plane_width,
            "plane_height": self.plane_height,
            "center_distance": self.center_distance,
            "target_behavior": self.target_behavior,
            "scenes": [s.to_dict() for s in self.scenes],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            plane_width=float(data["plane_width"]),
            plane_height=float(data["plane_height"]),
            center_distance=float(data["center_distance"]),
            target_behavior=data.get("target_behavior", "zoom"),
            scenes=tuple(SceneEntry.from_dict(s) for s in data.get("scenes", [])),
        )
