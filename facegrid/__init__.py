"""face-grid: build a grid of face-aligned photographs."""

__version__ = "0.1.0"
