"""HUD label rendering: pygame fonts rasterized and blitted with glDrawPixels."""

import pygame
from OpenGL.GL import *

from config import boids as config


class TextRenderer:
    """
    Draws a column of HUD labels in the window's top-left corner.

    Labels change about once per second, so each distinct string is rasterized
    once and its RGBA bytes reused until it drops out of the HUD.
    """

    def __init__(self, font_name: str = "monospace", font_size: int = 20, color: tuple = None,
                 line_height: int = 25):
        pygame.font.init()
        self.font = pygame.font.SysFont(font_name, font_size)
        self.color = color if color is not None else config.COLORS["text"]
        self.line_height = line_height
        self._cache = {}

    def _bitmap(self, text: str):
        """(width, height, RGBA bytes) for ``text``, bottom row first."""
        bitmap = self._cache.get(text)
        if bitmap is None:
            surface = self.font.render(text, True, self.color)
            w, h = surface.get_size()
            bitmap = (w, h, pygame.image.tobytes(surface, "RGBA", True))
            self._cache[text] = bitmap
        return bitmap

    def draw_lines(self, lines, x: int, y: int, screen_size: tuple):
        """
        Draw ``lines`` top to bottom starting at pixel (x, y).

        Args:
            lines: Label strings
            x, y: Top-left corner in window pixels (y grows down)
            screen_size: (width, height) of the window
        """
        lines = list(lines)
        for stale in set(self._cache) - set(lines):
            del self._cache[stale]
        if not lines:
            return

        height = screen_size[1]

        # Raster positions are bottom-up, the scene projection is top-down
        glMatrixMode(GL_PROJECTION)
        glPushMatrix()
        glLoadIdentity()
        glOrtho(0, screen_size[0], 0, height, -1, 1)
        glMatrixMode(GL_MODELVIEW)
        glPushMatrix()
        glLoadIdentity()
        glEnable(GL_BLEND)
        glBlendFunc(GL_SRC_ALPHA, GL_ONE_MINUS_SRC_ALPHA)

        try:
            for row, text in enumerate(lines):
                w, h, data = self._bitmap(text)
                glRasterPos2f(x, height - (y + row * self.line_height) - h)
                glDrawPixels(w, h, GL_RGBA, GL_UNSIGNED_BYTE, data)
        finally:
            glDisable(GL_BLEND)
            glPopMatrix()
            glMatrixMode(GL_PROJECTION)
            glPopMatrix()
            glMatrixMode(GL_MODELVIEW)
