"""Flat-shaded triangle batches for the flock."""

import numpy as np
from OpenGL.GL import *

from config import boids as config


class TriangleRenderer:
    """Draws world-space boid triangles with client-side vertex arrays."""

    def __init__(self, color: tuple = None):
        self.color = color if color is not None else config.COLORS["boid"]
        self._vertices = np.zeros((0, 2), dtype=np.float32)

    def _upload(self, triangles: np.ndarray) -> int:
        """Flatten (n, 3, 2) float64 triangles into a float32 vertex buffer."""
        total_verts = triangles.shape[0] * 3
        if self._vertices.shape[0] < total_verts:
            self._vertices = np.zeros((total_verts, 2), dtype=np.float32)
        self._vertices[:total_verts] = triangles.reshape(total_verts, 2)
        return total_verts

    def draw(self, triangles: np.ndarray):
        """
        Draw every triangle in one call.

        Args:
            triangles: (n, 3, 2) world-space vertices in screen pixels
        """
        if triangles.shape[0] == 0:
            return

        total_verts = self._upload(triangles)

        glColor3f(*self.color)
        glEnableClientState(GL_VERTEX_ARRAY)
        glVertexPointer(2, GL_FLOAT, 0, self._vertices[:total_verts])
        glDrawArrays(GL_TRIANGLES, 0, total_verts)
        glDisableClientState(GL_VERTEX_ARRAY)
