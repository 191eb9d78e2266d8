"""Pointer and wheel handling: orbit drags, zoom and click picking."""

import logging
import math
from collections.abc import Callable, Iterable
from enum import Enum

from auramap.graph.config import InteractionConfig
from auramap.models import MemoryNode, NodeKind
from auramap.view.camera import OrbitCamera
from auramap.view.frame import DrawList, DrawNode

logger = logging.getLogger(__name__)

SelectionCallback = Callable[[MemoryNode | None], None]


class InteractionState(str, Enum):
    """Pointer gesture state."""

    IDLE = "idle"
    DRAGGING = "dragging"


def pick(draw: DrawList | None, x: float, y: float, min_hit_radius: float = 15.0) -> DrawNode | None:
    """Resolve a screen point to the nearest-to-camera node under it.

    A node is hit when the point lies within max(size, min_hit_radius) of its
    projected centre. Among hits the smallest depth wins.
    """
    if draw is None:
        return None
    best: DrawNode | None = None
    for node in draw.nodes:
        radius = max(node.size, min_hit_radius)
        if math.hypot(x - node.screen_x, y - node.screen_y) > radius:
            continue
        if best is None or node.depth < best.depth:
            best = node
    return best


class InteractionController:
    """
    Turns pointer input into camera changes and selections.

    States: idle -> dragging on pointer-down; pointer-up returns to idle and
    counts as a click when the net movement stayed under click_epsilon.
    Threshold and filter changes are forwarded to ``request_rebuild`` and
    never touch the camera or layout directly.
    """

    def __init__(
        self,
        camera: OrbitCamera,
        config: InteractionConfig | None = None,
        frame_source: Callable[[], DrawList | None] | None = None,
        node_lookup: Callable[[str], MemoryNode | None] | None = None,
        request_rebuild: Callable[..., None] | None = None,
        on_select: SelectionCallback | None = None,
    ) -> None:
        self.camera = camera
        self.config = config or InteractionConfig()
        self.frame_source = frame_source or (lambda: None)
        self.node_lookup = node_lookup or (lambda node_id: None)
        self.request_rebuild = request_rebuild
        self.on_select = on_select

        self.state = InteractionState.IDLE
        self.selected_id: str | None = None
        self._start: tuple[float, float] = (0.0, 0.0)
        self._last: tuple[float, float] = (0.0, 0.0)

    @property
    def is_idle(self) -> bool:
        return self.state == InteractionState.IDLE

    def pointer_down(self, x: float, y: float) -> None:
        self._start = (x, y)
        self._last = (x, y)
        self.state = InteractionState.DRAGGING

    def pointer_move(self, x: float, y: float) -> None:
        if self.state != InteractionState.DRAGGING:
            return
        dx = x - self._last[0]
        dy = y - self._last[1]
        self.camera.rotate_by(dx, dy)
        self._last = (x, y)

    def pointer_up(self, x: float, y: float) -> bool:
        """End a gesture. Returns True when it resolved as a click."""
        if self.state != InteractionState.DRAGGING:
            return False
        self.state = InteractionState.IDLE
        distance = math.hypot(x - self._start[0], y - self._start[1])
        if distance >= self.config.click_epsilon:
            return False
        self.click(x, y)
        return True

    def pointer_cancel(self) -> None:
        """Abort a gesture without selecting (pointer left the surface)."""
        self.state = InteractionState.IDLE

    def click(self, x: float, y: float) -> MemoryNode | None:
        """Pick against the last frame and fire the selection callback."""
        hit = pick(self.frame_source(), x, y, self.config.min_hit_radius)
        node = self.node_lookup(hit.node_id) if hit is not None else None
        self.selected_id = node.id if node is not None else None
        logger.debug(f"Click at ({x:.1f}, {y:.1f}) selected {self.selected_id}")
        if self.on_select is not None:
            self.on_select(node)
        return node

    def wheel(self, delta: float) -> bool:
        """Zoom by a wheel delta.

        Returns True, telling the host to suppress the page scroll.
        """
        self.camera.zoom_by(delta)
        return True

    def set_threshold(self, threshold: float) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Similarity threshold must be within [0, 1], got {threshold}")
        if self.request_rebuild is not None:
            self.request_rebuild(threshold=threshold)

    def set_kind_filter(self, kinds: Iterable[NodeKind | str] | None) -> None:
        parsed = None if kinds is None else frozenset(NodeKind(k) for k in kinds)
        if self.request_rebuild is not None:
            self.request_rebuild(kinds=parsed)
