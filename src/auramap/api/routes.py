"""HTTP and websocket routes for the memory map."""

import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from neo4j.exceptions import DriverError, Neo4jError
from pydantic import BaseModel

from auramap.config import settings
from auramap.graph.config import MapConfig
from auramap.models import MemoryNode, NodeKind
from auramap.runtime import RenderLoop, SimulationContext
from auramap.storage.neo4j_client import Neo4jClient
from auramap.view import DrawList, Viewport

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "0.1.0"


# =============================================================================
# Request/Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    neo4j_connected: bool
    version: str = VERSION


class SnapshotResponse(BaseModel):
    """Headless map run: final draw list and layout metrics."""

    frame: dict[str, Any]
    metrics: dict[str, Any]
    nodes: list[dict[str, Any]]
    isolated_ids: list[str] = []
    capped_ids: list[str] = []


# =============================================================================
# Helpers
# =============================================================================


def get_db(request: Request) -> Neo4jClient:
    """Get database from app state."""
    return request.app.state.db


def build_config(threshold: float | None = None) -> MapConfig:
    """Map config from settings, with an optional threshold override."""
    config = MapConfig.from_settings(settings)
    if threshold is not None:
        config.similarity.threshold = threshold
    return config


def handle_client_message(context: SimulationContext, message: dict[str, Any]) -> None:
    """Apply one client message to a map session.

    Pointer and wheel input go to the interaction controller; everything that
    changes the graph is queued on the context for the next frame.
    """
    if not isinstance(message, dict):
        raise ValueError(f"Expected a JSON object, got {type(message).__name__}")
    kind = message.get("type")
    controller = context.controller

    if kind == "pointer_down":
        controller.pointer_down(float(message["x"]), float(message["y"]))
    elif kind == "pointer_move":
        controller.pointer_move(float(message["x"]), float(message["y"]))
    elif kind == "pointer_up":
        controller.pointer_up(float(message["x"]), float(message["y"]))
    elif kind == "pointer_cancel":
        controller.pointer_cancel()
    elif kind == "wheel":
        controller.wheel(float(message["delta"]))
    elif kind == "threshold":
        controller.set_threshold(float(message["value"]))
    elif kind == "filter":
        controller.set_kind_filter(message.get("kinds"))
    elif kind == "focus":
        context.request_focus(message.get("embedding"))
    elif kind == "resize":
        context.resize(float(message["width"]), float(message["height"]))
    else:
        raise ValueError(f"Unknown message type: {kind!r}")


# =============================================================================
# Routes
# =============================================================================


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Health check endpoint."""
    db = get_db(request)
    try:
        await db.execute_query("RETURN 1 as n")
        neo4j_connected = True
    except (Neo4jError, DriverError) as e:
        logger.warning(f"Health check failed: {e}")
        neo4j_connected = False

    return HealthResponse(
        status="healthy" if neo4j_connected else "degraded",
        neo4j_connected=neo4j_connected,
    )


@router.get("/map/snapshot", response_model=SnapshotResponse)
async def map_snapshot(
    request: Request,
    character_id: str | None = None,
    threshold: float | None = Query(default=None, ge=0.0, le=1.0),
    kinds: list[NodeKind] | None = Query(default=None),
    ticks: int = Query(default=120, ge=0, le=5000),
    width: float = Query(default=800.0, gt=0),
    height: float = Query(default=600.0, gt=0),
) -> SnapshotResponse:
    """Run the map headless for ``ticks`` frames and return the last frame."""
    db = get_db(request)
    try:
        nodes = await db.fetch_map_nodes(character_id)
    except (Neo4jError, DriverError) as e:
        logger.error(f"Node fetch failed: {e}")
        raise HTTPException(status_code=503, detail="Node store unavailable")

    with SimulationContext(
        nodes,
        config=build_config(threshold),
        viewport=Viewport(width=width, height=height),
        kinds=kinds,
    ) as context:
        draw = context.advance(ticks)
        graph = context.graph
        return SnapshotResponse(
            frame=draw.to_dict(),
            metrics=context.metrics().to_dict(),
            nodes=[n.to_dict() for n in context.nodes],
            isolated_ids=graph.isolated_ids if graph else [],
            capped_ids=graph.capped_ids if graph else [],
        )


@router.websocket("/map/ws")
async def map_session(
    websocket: WebSocket,
    character_id: str | None = None,
    width: float = 800.0,
    height: float = 600.0,
) -> None:
    """Live map session: one simulation context and render loop per connection."""
    await websocket.accept()
    db: Neo4jClient = websocket.app.state.db
    try:
        nodes = await db.fetch_map_nodes(character_id)
    except (Neo4jError, DriverError) as e:
        logger.error(f"Node fetch failed: {e}")
        await websocket.close(code=1011)
        return

    # Selection events wait here; the frame sink is the only sender
    outbox: list[dict[str, Any]] = []

    def on_select(node: MemoryNode | None) -> None:
        outbox.append({"type": "selection", "node": node.to_dict() if node else None})

    async def send_frame(draw: DrawList) -> None:
        while outbox:
            await websocket.send_json(outbox.pop(0))
        await websocket.send_json({"type": "frame", **draw.to_dict()})

    context = SimulationContext(
        nodes,
        config=build_config(),
        viewport=Viewport(width=width, height=height),
        on_select=on_select,
    )
    logger.info(f"Map session opened: {len(context.nodes)} nodes")

    async with RenderLoop(context, send_frame):
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    handle_client_message(context, json.loads(raw))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Ignoring bad client message: {e}")
        except WebSocketDisconnect:
            logger.info("Map session closed by client")
