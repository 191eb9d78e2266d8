"""Configuration management using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Similarity graph
    map_similarity_threshold: float = Field(
        default=0.75,
        ge=0.0,
        le=1.0,
        description="Strict cosine threshold; an edge needs sim > threshold",
    )
    map_node_cap: int = Field(
        default=250,
        ge=1,
        description="Max nodes entering the O(n^2) edge and repulsion passes",
    )
    map_rest_length_min: float = 20.0
    map_rest_length_range: float = 300.0

    # Layout physics (one tick per frame, unit time step)
    layout_gravity: float = 0.002
    layout_repulsion: float = 1500.0
    layout_max_force: float = 4.0
    layout_spring: float = 0.01
    layout_damping: float = Field(
        default=0.92,
        gt=0.0,
        lt=1.0,
        description="Velocity multiplier per tick",
    )
    layout_max_speed: float = 40.0
    layout_spawn_extent: float = 150.0
    layout_seed: int | None = None

    # Orbit camera
    camera_focal_length: float = 600.0
    camera_zoom: float = 700.0
    camera_zoom_min: float = 200.0
    camera_zoom_max: float = 2500.0
    camera_near_clip: float = 10.0
    camera_drag_sensitivity: float = 0.005
    camera_zoom_sensitivity: float = 0.5
    camera_auto_rotate_speed: float = Field(
        default=0.002,
        description="Radians added to the target yaw per idle frame (0 disables)",
    )
    camera_smoothing: float = Field(
        default=0.15,
        gt=0.0,
        le=1.0,
        description="Fraction of the remaining angle applied per frame; 1.0 is immediate",
    )

    # Pointer interaction
    interaction_click_epsilon: float = 5.0
    interaction_min_hit_radius: float = 15.0

    # Visual modulation
    view_node_size: float = 6.0
    view_fog_distance: float = 900.0
    view_min_opacity: float = 0.15
    view_dust_cutoff: float = 0.35
    view_dust_opacity: float = 0.12
    view_edge_opacity: float = 0.6

    # Render loop
    map_frame_rate: float = 60.0

    # Neo4j Configuration
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "auramap_password"
    neo4j_database: str = "neo4j"
    neo4j_fetch_limit: int = 1000

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False


# Global settings instance
settings = Settings()
