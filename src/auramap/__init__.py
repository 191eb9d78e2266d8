"""Auramap: semantic force-directed 3D map of a companion's memories."""

__version__ = "0.1.0"
