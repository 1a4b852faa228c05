"""screencut — timeline resolution and camera path engine for screen recordings."""

__version__ = "0.1.0"
