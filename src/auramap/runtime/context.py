"""Simulation context: all state of one mounted memory map."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from auramap.graph.config import MapConfig
from auramap.graph.layout import LayoutEngine
from auramap.graph.metrics import LayoutMetrics, compute_layout_metrics
from auramap.graph.models import GraphBuildResult, GraphParameters
from auramap.graph.similarity import SimilarityGraphBuilder, score_relevance
from auramap.models import MemoryNode, NodeKind, parse_embedding
from auramap.view.camera import OrbitCamera, Viewport
from auramap.view.frame import DrawList, build_draw_list
from auramap.view.interaction import InteractionController, SelectionCallback

logger = logging.getLogger(__name__)

# Distinguishes "not requested" from an explicit None
UNSET: Any = object()


@dataclass
class PendingChange:
    """Configuration queued by event handlers, applied at the top of a frame."""

    nodes: list[MemoryNode] | None = None
    threshold: float | None = None
    kinds: Any = UNSET  # frozenset[NodeKind] | None
    focus: Any = UNSET  # list[float] | None
    viewport: Viewport | None = None

    @property
    def needs_rebuild(self) -> bool:
        return self.nodes is not None or self.threshold is not None or self.kinds is not UNSET


class SimulationContext:
    """
    Owns the similarity graph, layout, camera and interaction of one map.

    Event handlers only queue changes (``request_rebuild``, ``submit_nodes``,
    ``request_focus``, ``resize``); ``step`` consumes them at the start of the
    next frame, then ticks physics, advances the camera and projects. Pointer
    input goes straight to ``controller``, which only moves camera targets.
    """

    def __init__(
        self,
        nodes: Sequence[MemoryNode] = (),
        config: MapConfig | None = None,
        viewport: Viewport | None = None,
        on_select: SelectionCallback | None = None,
        kinds: Iterable[NodeKind] | None = None,
    ) -> None:
        self.config = config or MapConfig()
        self.viewport = viewport or Viewport()
        self.builder = SimilarityGraphBuilder(self.config.similarity)
        self.engine = LayoutEngine(self.config.layout)
        self.camera = OrbitCamera(self.config.camera)
        self.controller = InteractionController(
            self.camera,
            self.config.interaction,
            frame_source=lambda: self.last_frame,
            node_lookup=self.get_node,
            request_rebuild=self.request_rebuild,
            on_select=on_select,
        )

        self.parameters = GraphParameters(
            threshold=self.config.similarity.threshold,
            kinds=frozenset(kinds) if kinds is not None else None,
        )
        self.graph: GraphBuildResult | None = None
        self.last_frame: DrawList | None = None
        self.frame = 0
        self.closed = False

        self._nodes: list[MemoryNode] = list(nodes)
        self._node_by_id: dict[str, MemoryNode] = {}
        self._focus: list[float] | None = None
        self._pending: PendingChange | None = None

        self._rebuild()

    # ------------------------------------------------------------------
    # Event-side API: queue only
    # ------------------------------------------------------------------

    def _queue(self) -> PendingChange:
        if self._pending is None:
            self._pending = PendingChange()
        return self._pending

    def request_rebuild(self, threshold: float | None = None, kinds: Any = UNSET) -> None:
        """Queue a threshold and/or kind filter change."""
        if threshold is not None and not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Similarity threshold must be within [0, 1], got {threshold}")
        pending = self._queue()
        if threshold is not None:
            pending.threshold = float(threshold)
        if kinds is not UNSET:
            pending.kinds = frozenset(kinds) if kinds is not None else None

    def submit_nodes(self, nodes: Sequence[MemoryNode]) -> None:
        """Queue a replacement node batch (new data from the store)."""
        self._queue().nodes = list(nodes)

    def request_focus(self, query_embedding: Sequence[float] | None) -> None:
        """Queue relevance scoring against a query embedding; None clears it."""
        if query_embedding is None:
            self._queue().focus = None
            return
        vector = parse_embedding(query_embedding)
        if vector is None:
            raise ValueError("Focus embedding must be a non-empty list of finite numbers")
        self._queue().focus = vector

    def resize(self, width: float, height: float) -> None:
        self._queue().viewport = Viewport(width=float(width), height=float(height))

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    # ------------------------------------------------------------------
    # Frame-side API
    # ------------------------------------------------------------------

    def apply_pending(self) -> bool:
        """Consume queued changes. Returns True when the graph was rebuilt."""
        pending, self._pending = self._pending, None
        if pending is None:
            return False

        if pending.viewport is not None:
            self.viewport = pending.viewport
        if pending.nodes is not None:
            self._nodes = pending.nodes
        if pending.threshold is not None:
            self.parameters.threshold = pending.threshold
        if pending.kinds is not UNSET:
            self.parameters.kinds = pending.kinds

        rebuilt = False
        if pending.needs_rebuild:
            self._rebuild()
            rebuilt = True
        if pending.nodes is not None:
            self.engine.forget(n.id for n in self._nodes)

        if pending.focus is not UNSET:
            self._focus = pending.focus
            scored = score_relevance(self._nodes, self._focus)
            logger.info(f"Relevance focus {'cleared' if self._focus is None else 'set'}: {scored} scored")
        elif pending.nodes is not None and self._focus is not None:
            score_relevance(self._nodes, self._focus)

        return rebuilt

    def _rebuild(self) -> None:
        result = self.builder.build(
            self._nodes,
            threshold=self.parameters.threshold,
            kinds=self.parameters.kinds,
        )
        self.engine.sync(result.ids, result.edges)
        self.graph = result
        self._node_by_id = {n.id: n for n in result.nodes}
        if self.controller.selected_id not in self._node_by_id:
            self.controller.selected_id = None

    def step(self) -> DrawList:
        """Run one frame: pending changes, physics tick, camera, projection."""
        if self.closed:
            raise RuntimeError("Simulation context is closed")

        self.apply_pending()
        self.engine.tick()
        self.camera.advance(idle=self.controller.is_idle)
        self.frame += 1
        self.last_frame = self.project()
        return self.last_frame

    def project(self) -> DrawList:
        """Project the current layout without advancing it."""
        graph = self.graph
        return build_draw_list(
            graph.nodes if graph else [],
            self.engine.positions,
            graph.edges if graph else [],
            self.camera,
            self.viewport,
            self.config.style,
            selected_id=self.controller.selected_id,
            frame=self.frame,
        )

    def advance(self, frames: int) -> DrawList:
        """Run several frames headless and return the last draw list."""
        draw = self.last_frame or self.project()
        for _ in range(frames):
            draw = self.step()
        return draw

    def get_node(self, node_id: str) -> MemoryNode | None:
        return self._node_by_id.get(node_id)

    @property
    def nodes(self) -> list[MemoryNode]:
        """Nodes currently on the map, arena order."""
        return self.graph.nodes if self.graph else []

    def metrics(self) -> LayoutMetrics:
        return compute_layout_metrics(self.engine)

    def close(self) -> None:
        """Release simulation state. Further steps raise."""
        if self.closed:
            return
        self.closed = True
        self.engine.clear()
        self.graph = None
        self.last_frame = None
        self._node_by_id = {}
        self._pending = None
        self.controller.on_select = None
        logger.debug("Simulation context closed")

    def __enter__(self) -> "SimulationContext":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
