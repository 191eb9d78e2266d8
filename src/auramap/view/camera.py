"""Orbit camera and perspective projection."""

import math
from dataclasses import dataclass, field

import numpy as np

from auramap.graph.config import CameraConfig

# Keeps the orbit from flipping over the poles
PITCH_LIMIT = math.pi / 2 - 0.05


@dataclass
class Viewport:
    """Screen size in pixels; the projection centre is its midpoint."""

    width: float = 800.0
    height: float = 600.0

    @property
    def center_x(self) -> float:
        return self.width / 2

    @property
    def center_y(self) -> float:
        return self.height / 2


@dataclass
class Projection:
    """Per-node projection of one frame, arena order."""

    screen: np.ndarray  # (n, 2)
    depth: np.ndarray  # (n,) rotated z + zoom
    scale: np.ndarray  # (n,) focal / depth, 0 where clipped
    visible: np.ndarray  # (n,) bool, False when behind the near clip


@dataclass
class OrbitCamera:
    """
    Yaw/pitch orbit around the origin plus a zoom distance.

    Pointer input moves the target angles. Every frame ``advance`` moves the
    live angles toward the targets by exponential smoothing (smoothing=1.0
    snaps immediately). Auto-rotation nudges the target yaw while idle.
    Zoom changes apply immediately.
    """

    config: CameraConfig = field(default_factory=CameraConfig)
    yaw: float = 0.0
    pitch: float = 0.0
    zoom: float | None = None  # Defaults to config.zoom
    target_yaw: float = 0.0
    target_pitch: float = 0.0

    def __post_init__(self) -> None:
        if self.zoom is None:
            self.zoom = self.config.zoom
        self.zoom = self._clamp_zoom(self.zoom)
        self.pitch = _clamp_pitch(self.pitch)
        self.target_pitch = _clamp_pitch(self.target_pitch)

    def _clamp_zoom(self, zoom: float) -> float:
        return min(self.config.zoom_max, max(self.config.zoom_min, zoom))

    def rotate_by(self, dx: float, dy: float) -> None:
        """Move the target angles by a pointer delta in pixels."""
        sensitivity = self.config.drag_sensitivity
        self.target_yaw += dx * sensitivity
        self.target_pitch = _clamp_pitch(self.target_pitch + dy * sensitivity)

    def zoom_by(self, delta: float) -> float:
        """Adjust zoom by a wheel delta, clamped. Returns the new zoom."""
        self.zoom = self._clamp_zoom(self.zoom + delta * self.config.zoom_sensitivity)
        return self.zoom

    def advance(self, idle: bool = True) -> None:
        """Per-frame update: ambient rotation, then smoothing toward targets."""
        if idle and self.config.auto_rotate_speed:
            self.target_yaw += self.config.auto_rotate_speed
        k = self.config.smoothing
        self.yaw += (self.target_yaw - self.yaw) * k
        self.pitch += (self.target_pitch - self.pitch) * k

    def rotate(self, points: np.ndarray) -> np.ndarray:
        """Rotate world points (n, 3) into camera space: yaw about Y, then pitch about X."""
        cy, sy = math.cos(self.yaw), math.sin(self.yaw)
        cp, sp = math.cos(self.pitch), math.sin(self.pitch)
        x, y, z = points[:, 0], points[:, 1], points[:, 2]

        x1 = cy * x - sy * z
        z1 = sy * x + cy * z

        y2 = cp * y - sp * z1
        z2 = sp * y + cp * z1
        return np.stack([x1, y2, z2], axis=1)

    def project(self, points: np.ndarray, viewport: Viewport) -> Projection:
        """Rotate and perspective-divide world points onto the screen."""
        n = len(points)
        if n == 0:
            return Projection(
                screen=np.zeros((0, 2)),
                depth=np.zeros(0),
                scale=np.zeros(0),
                visible=np.zeros(0, dtype=bool),
            )

        rotated = self.rotate(np.asarray(points, dtype=float))
        depth = rotated[:, 2] + self.zoom
        visible = np.isfinite(depth) & (depth >= self.config.near_clip)

        safe_depth = np.where(visible, depth, 1.0)
        scale = np.where(visible, self.config.focal_length / safe_depth, 0.0)
        screen = np.empty((n, 2))
        screen[:, 0] = rotated[:, 0] * scale + viewport.center_x
        screen[:, 1] = rotated[:, 1] * scale + viewport.center_y
        visible &= np.isfinite(screen).all(axis=1)

        return Projection(screen=screen, depth=depth, scale=scale, visible=visible)


def _clamp_pitch(pitch: float) -> float:
    return min(PITCH_LIMIT, max(-PITCH_LIMIT, pitch))
