"""Rendering components for the 2D boids simulation."""

from .triangles import TriangleRenderer
from .text import TextRenderer

__all__ = ["TriangleRenderer", "TextRenderer"]
