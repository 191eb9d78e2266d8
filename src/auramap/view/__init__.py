"""Camera, projection and pointer interaction for the memory map."""

from auramap.view.camera import OrbitCamera, Projection, Viewport
from auramap.view.frame import DrawEdge, DrawList, DrawNode, build_draw_list
from auramap.view.interaction import InteractionController, InteractionState, pick

__all__ = [
    "OrbitCamera",
    "Projection",
    "Viewport",
    "DrawEdge",
    "DrawList",
    "DrawNode",
    "build_draw_list",
    "InteractionController",
    "InteractionState",
    "pick",
]
