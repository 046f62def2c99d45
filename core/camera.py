"""Keyframed camera path.

Waypoints share one breakpoint table; at any frame each of the six scalar
channels (position x/y/z, look-at x/y/z) is interpolated independently and
clamped at both ends, so the sweep is continuous across stage boundaries.
"""
from dataclasses import dataclass
import numpy as np

from animation.easing import interpolate

DEFAULT_DURATION = 300
_WORLD_UP = np.array([0.0, 1.0, 0.0])

# name, frame, position, look-at
_DEFAULT_WAYPOINTS = (
    ('overview', 0, (-50.0, 20.0, 30.0), (-30.0, 0.0, 0.0)),
    ('embedding', 80, (-30.0, 10.0, 25.0), (-30.0, 0.0, 0.0)),
    ('attention', 160, (0.0, 40.0, 40.0), (0.0, 0.0, 0.0)),
    ('logits', 240, (35.0, 5.0, 30.0), (35.0, -5.0, 0.0)),
)
# Closing hold at the last frame: drift low and tilt up at the popped word
_END_POSITION = (35.0, -5.0, 20.0)
_END_TARGET = (35.0, 5.0, 0.0)


@dataclass(frozen=True)
class Waypoint:
    name: str
    frame: float
    position: tuple
    target: tuple


@dataclass(frozen=True, eq=False)
class CameraPose:
    position: np.ndarray
    target: np.ndarray

    def forward(self) -> np.ndarray:
        d = self.target - self.position
        norm = np.linalg.norm(d)
        if norm < 1e-9:
            return np.array([0.0, 0.0, -1.0])
        return d / norm

    def view_matrix(self) -> np.ndarray:
        """Right-handed look-at matrix (world -> camera), float32 4x4."""
        fwd = self.forward()
        right = np.cross(fwd, _WORLD_UP)
        if np.linalg.norm(right) < 1e-9:
            # looking straight up or down; any horizontal right vector works
            right = np.array([1.0, 0.0, 0.0])
        right = right / np.linalg.norm(right)
        up = np.cross(right, fwd)

        view = np.eye(4, dtype=np.float32)
        view[0, :3] = right
        view[1, :3] = up
        view[2, :3] = -fwd
        view[:3, 3] = -view[:3, :3] @ self.position
        return view


class CameraPath:
    def __init__(self):
        self.waypoints = []

    def add_waypoint(self, name: str, frame: float, position, target):
        if self.waypoints and frame <= self.waypoints[-1].frame:
            raise ValueError(
                f"waypoint {name!r} at frame {frame} must come after "
                f"{self.waypoints[-1].name!r} at frame {self.waypoints[-1].frame}")
        self.waypoints.append(Waypoint(
            name=name, frame=frame,
            position=tuple(float(v) for v in position),
            target=tuple(float(v) for v in target),
        ))

    @classmethod
    def default(cls, duration_in_frames: int = DEFAULT_DURATION, breakpoints=None) -> 'CameraPath':
        """embedding view -> attention view -> logit view, then a closing hold.

        `breakpoints` moves the four stage waypoints onto another stage table
        (e.g. a timeline's); the poses stay the same.
        """
        if breakpoints is None:
            breakpoints = [frame for _, frame, _, _ in _DEFAULT_WAYPOINTS]
        if len(breakpoints) != len(_DEFAULT_WAYPOINTS):
            raise ValueError(
                f"expected {len(_DEFAULT_WAYPOINTS)} stage breakpoints, got {list(breakpoints)}")
        path = cls()
        for (name, _, pos, tgt), frame in zip(_DEFAULT_WAYPOINTS, breakpoints):
            path.add_waypoint(name, frame, pos, tgt)
        path.add_waypoint('end', duration_in_frames, _END_POSITION, _END_TARGET)
        return path

    @property
    def breakpoints(self) -> list:
        return [w.frame for w in self.waypoints]

    def get_waypoint(self, name: str) -> Waypoint:
        for w in self.waypoints:
            if w.name == name:
                return w
        raise KeyError(name)

    def pose_at(self, frame: float) -> CameraPose:
        if len(self.waypoints) < 2:
            if not self.waypoints:
                raise ValueError("camera path has no waypoints")
            w = self.waypoints[0]
            return CameraPose(np.array(w.position), np.array(w.target))

        frames = self.breakpoints
        position = np.array([
            interpolate(frame, frames, [w.position[axis] for w in self.waypoints])
            for axis in range(3)
        ])
        target = np.array([
            interpolate(frame, frames, [w.target[axis] for w in self.waypoints])
            for axis in range(3)
        ])
        return CameraPose(position, target)
