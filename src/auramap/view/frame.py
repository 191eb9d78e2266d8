"""Draw list produced each frame for an external renderer."""

import heapq
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

import numpy as np

from auramap.graph.config import StyleConfig
from auramap.graph.models import Edge
from auramap.models import MemoryNode, NodeKind
from auramap.view.camera import OrbitCamera, Viewport

logger = logging.getLogger(__name__)


@dataclass
class DrawNode:
    """One visible node in screen space."""

    node_id: str
    kind: NodeKind
    screen_x: float
    screen_y: float
    depth: float
    size: float  # Screen radius in px
    color: str
    opacity: float
    dust: bool = False  # Low relevance: drawn near-invisible, still pickable
    selected: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for the renderer."""
        return {
            "id": self.node_id,
            "kind": self.kind.value,
            "x": round(self.screen_x, 2),
            "y": round(self.screen_y, 2),
            "depth": round(self.depth, 2),
            "size": round(self.size, 2),
            "color": self.color,
            "opacity": round(self.opacity, 3),
            "dust": self.dust,
            "selected": self.selected,
        }


@dataclass
class DrawEdge:
    """One visible edge in screen space."""

    source_id: str
    target_id: str
    screen_x1: float
    screen_y1: float
    screen_x2: float
    screen_y2: float
    depth: float  # Mean endpoint depth, used for ordering
    opacity: float

    def to_dict(self) -> dict:
        """Convert to dictionary for the renderer."""
        return {
            "source": self.source_id,
            "target": self.target_id,
            "x1": round(self.screen_x1, 2),
            "y1": round(self.screen_y1, 2),
            "x2": round(self.screen_x2, 2),
            "y2": round(self.screen_y2, 2),
            "depth": round(self.depth, 2),
            "opacity": round(self.opacity, 3),
        }


@dataclass
class DrawList:
    """Everything a renderer needs for one frame, sorted back to front."""

    nodes: list[DrawNode] = field(default_factory=list)
    edges: list[DrawEdge] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0
    frame: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def _merged(self) -> Iterator[tuple[str, int, DrawNode | DrawEdge]]:
        keyed_edges = ((-e.depth, 0, i, "edge", e) for i, e in enumerate(self.edges))
        keyed_nodes = ((-n.depth, 1, i, "node", n) for i, n in enumerate(self.nodes))
        for _, _, i, kind, item in heapq.merge(keyed_edges, keyed_nodes, key=lambda k: k[:3]):
            yield kind, i, item

    def items(self) -> Iterator[DrawNode | DrawEdge]:
        """Nodes and edges interleaved back to front.

        At equal depth an edge comes before a node so nodes cap their lines.
        """
        for _, _, item in self._merged():
            yield item

    def order(self) -> list[tuple[str, int]]:
        """Paint order as (kind, index) pairs into ``edges`` and ``nodes``."""
        return [(kind, i) for kind, i, _ in self._merged()]

    def find(self, node_id: str) -> DrawNode | None:
        for node in self.nodes:
            if node.node_id == node_id:
                return node
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON transport."""
        return {
            "frame": self.frame,
            "width": self.width,
            "height": self.height,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "order": [[kind, i] for kind, i in self.order()],
        }


def depth_fade(depth: np.ndarray, zoom: float, style: StyleConfig) -> np.ndarray:
    """Opacity falloff for nodes behind the orbit centre."""
    behind = np.maximum(depth - zoom, 0.0)
    fade = 1.0 - behind / style.fog_distance
    return np.clip(fade, style.min_opacity, 1.0)


def build_draw_list(
    nodes: Sequence[MemoryNode],
    positions: np.ndarray,
    edges: Sequence[Edge],
    camera: OrbitCamera,
    viewport: Viewport,
    style: StyleConfig | None = None,
    selected_id: str | None = None,
    frame: int = 0,
) -> DrawList:
    """Project nodes and edges to a depth-sorted draw list.

    Args:
        nodes: Arena-ordered nodes matching ``positions`` rows
        positions: (n, 3) world positions
        edges: Edges indexing the arena
        camera: Camera to project with
        viewport: Screen size
        style: Visual modulation settings
        selected_id: Node flagged as selected
        frame: Frame counter copied into the list

    Returns:
        DrawList with nodes and edges each sorted far to near
    """
    style = style or StyleConfig()
    draw = DrawList(width=viewport.width, height=viewport.height, frame=frame)
    if not len(nodes):
        return draw

    projection = camera.project(positions, viewport)
    fade = depth_fade(projection.depth, camera.zoom, style)
    opacity = np.zeros(len(nodes))

    for i, node in enumerate(nodes):
        if not projection.visible[i]:
            continue
        alpha = float(fade[i])
        size = style.node_size * float(projection.scale[i])
        dust = False
        if node.relevance is not None:
            if node.relevance < style.dust_cutoff:
                dust = True
                alpha *= style.dust_opacity
                size *= 0.5
            else:
                # Scale the rest into [0.5, 1] so relevant nodes stand out
                alpha *= 0.5 + 0.5 * node.relevance
        opacity[i] = alpha
        draw.nodes.append(
            DrawNode(
                node_id=node.id,
                kind=node.kind,
                screen_x=float(projection.screen[i, 0]),
                screen_y=float(projection.screen[i, 1]),
                depth=float(projection.depth[i]),
                size=size,
                color=style.palette.get(node.kind, "#ffffff"),
                opacity=alpha,
                dust=dust,
                selected=node.id == selected_id,
            )
        )

    for edge in edges:
        a, b = edge.a, edge.b
        if not (projection.visible[a] and projection.visible[b]):
            continue
        draw.edges.append(
            DrawEdge(
                source_id=nodes[a].id,
                target_id=nodes[b].id,
                screen_x1=float(projection.screen[a, 0]),
                screen_y1=float(projection.screen[a, 1]),
                screen_x2=float(projection.screen[b, 0]),
                screen_y2=float(projection.screen[b, 1]),
                depth=float(projection.depth[a] + projection.depth[b]) / 2,
                opacity=float(style.edge_opacity * edge.similarity * min(opacity[a], opacity[b])),
            )
        )

    draw.nodes.sort(key=lambda n: n.depth, reverse=True)
    draw.edges.sort(key=lambda e: e.depth, reverse=True)
    return draw
