"""Configuration for the memory map pipeline."""

from dataclasses import dataclass, field

from auramap.config import Settings, settings as default_settings
from auramap.models import NodeKind


@dataclass
class SimilarityConfig:
    """Configuration for similarity edge construction."""

    threshold: float = 0.75  # Strict: edge only when sim > threshold
    node_cap: int = 250  # Bounds the quadratic passes

    # restLength = rest_length_min + (1 - sim) * rest_length_range
    rest_length_min: float = 20.0
    rest_length_range: float = 300.0

    @classmethod
    def from_settings(cls, s: Settings = default_settings) -> "SimilarityConfig":
        return cls(
            threshold=s.map_similarity_threshold,
            node_cap=s.map_node_cap,
            rest_length_min=s.map_rest_length_min,
            rest_length_range=s.map_rest_length_range,
        )


@dataclass
class LayoutConfig:
    """Configuration for the force-directed layout."""

    gravity: float = 0.002  # Pull toward origin
    repulsion: float = 1500.0  # Inverse-square constant
    max_force: float = 4.0  # Clamp on a single repulsive contribution
    spring: float = 0.01  # Hooke constant along edges
    damping: float = 0.92  # Velocity multiplier per tick
    max_speed: float = 40.0
    spawn_extent: float = 150.0  # New nodes spawn in [-extent, extent]^3
    seed: int | None = None

    @classmethod
    def from_settings(cls, s: Settings = default_settings) -> "LayoutConfig":
        return cls(
            gravity=s.layout_gravity,
            repulsion=s.layout_repulsion,
            max_force=s.layout_max_force,
            spring=s.layout_spring,
            damping=s.layout_damping,
            max_speed=s.layout_max_speed,
            spawn_extent=s.layout_spawn_extent,
            seed=s.layout_seed,
        )


@dataclass
class CameraConfig:
    """Configuration for the orbit camera."""

    focal_length: float = 600.0
    zoom: float = 700.0  # Initial distance added to rotated depth
    zoom_min: float = 200.0
    zoom_max: float = 2500.0
    near_clip: float = 10.0
    drag_sensitivity: float = 0.005  # Radians per pixel
    zoom_sensitivity: float = 0.5
    auto_rotate_speed: float = 0.002  # Radians per idle frame
    smoothing: float = 0.15  # 1.0 applies targets immediately

    @classmethod
    def from_settings(cls, s: Settings = default_settings) -> "CameraConfig":
        return cls(
            focal_length=s.camera_focal_length,
            zoom=s.camera_zoom,
            zoom_min=s.camera_zoom_min,
            zoom_max=s.camera_zoom_max,
            near_clip=s.camera_near_clip,
            drag_sensitivity=s.camera_drag_sensitivity,
            zoom_sensitivity=s.camera_zoom_sensitivity,
            auto_rotate_speed=s.camera_auto_rotate_speed,
            smoothing=s.camera_smoothing,
        )


@dataclass
class InteractionConfig:
    """Configuration for pointer handling and picking."""

    click_epsilon: float = 5.0  # Max drag distance (px) still counted as a click
    min_hit_radius: float = 15.0

    @classmethod
    def from_settings(cls, s: Settings = default_settings) -> "InteractionConfig":
        return cls(
            click_epsilon=s.interaction_click_epsilon,
            min_hit_radius=s.interaction_min_hit_radius,
        )


def _default_palette() -> dict[NodeKind, str]:
    return {
        NodeKind.MEMORY: "#5eead4",
        NodeKind.DREAM: "#a78bfa",
        NodeKind.THOUGHT: "#f472b6",
        NodeKind.INTERACTION: "#fbbf24",
    }


@dataclass
class StyleConfig:
    """Per-frame visual modulation (data only, no pixels)."""

    node_size: float = 6.0  # World-space radius before perspective scale
    fog_distance: float = 900.0  # Depth beyond the orbit centre where opacity bottoms out
    min_opacity: float = 0.15
    dust_cutoff: float = 0.35  # Relevance below this marks a node as dust
    dust_opacity: float = 0.12
    edge_opacity: float = 0.6
    palette: dict[NodeKind, str] = field(default_factory=_default_palette)

    @classmethod
    def from_settings(cls, s: Settings = default_settings) -> "StyleConfig":
        return cls(
            node_size=s.view_node_size,
            fog_distance=s.view_fog_distance,
            min_opacity=s.view_min_opacity,
            dust_cutoff=s.view_dust_cutoff,
            dust_opacity=s.view_dust_opacity,
            edge_opacity=s.view_edge_opacity,
        )


@dataclass
class MapConfig:
    """Combined configuration for one memory map instance."""

    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    style: StyleConfig = field(default_factory=StyleConfig)

    frame_rate: float = 60.0

    @classmethod
    def from_settings(cls, s: Settings = default_settings) -> "MapConfig":
        return cls(
            similarity=SimilarityConfig.from_settings(s),
            layout=LayoutConfig.from_settings(s),
            camera=CameraConfig.from_settings(s),
            interaction=InteractionConfig.from_settings(s),
            style=StyleConfig.from_settings(s),
            frame_rate=s.map_frame_rate,
        )
