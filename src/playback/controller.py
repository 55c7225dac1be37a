"""Camera controller capability consumed by the player.

Any object with these methods can be driven by the player:

    get_position() -> Vec3
    get_target() -> Vec3
    set_position(x, y, z)
    lerp_look_at(pos_a, target_a, pos_b, target_b, t, immediate=False)

InMemoryCameraController is a headless implementation that keeps the pose
in numpy arrays and records every frame it is given.
"""

import numpy as np

from src.timeline.models import CameraPose, Vec3


def _as_array(v):
    return np.array([v.x, v.y, v.z], dtype=float)


def _as_vec(a):
    return Vec3(float(a[0]), float(a[1]), float(a[2]))


def lerp_pose(start, end, t):
    """Linear interpolation between two CameraPoses (t is not clamped)."""
    pos = _as_array(start.position) + (_as_array(end.position) - _as_array(start.position)) * t
    tgt = _as_array(start.target) + (_as_array(end.target) - _as_array(start.target)) * t
    return CameraPose(position=_as_vec(pos), target=_as_vec(tgt))


class InMemoryCameraController:
    """Headless camera: holds a pose and logs each applied frame."""

    def __init__(self, position=None, target=None, record=True):
        self._position = _as_array(position or Vec3(0.0, 0.0, 2.25))
        self._target = _as_array(target or Vec3(0.0, 0.0, 0.0))
        self.record = record
        self.history = []

    @property
    def pose(self):
        return CameraPose(position=self.get_position(), target=self.get_target())

    def get_position(self):
        return _as_vec(self._position)

    def get_target(self):
        return _as_vec(self._target)

    def set_position(self, x, y, z):
        self._position = np.array([x, y, z], dtype=float)

    def lerp_look_at(self, pos_a, target_a, pos_b, target_b, t, immediate=False):
        pose = lerp_pose(CameraPose(pos_a, target_a), CameraPose(pos_b, target_b), t)
        self._position = _as_array(pose.position)
        self._target = _as_array(pose.target)
        if self.record:
            self.history.append((t, pose))
