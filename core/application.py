"""Window application: owns the GL context and renders flock frames."""

import pygame
from pygame.locals import *
from OpenGL.GL import *

from config import boids as config
from .input_handler import InputHandler
from rendering import TriangleRenderer, TextRenderer


class Application:
    """
    pygame/OpenGL window that acts as the frame loop's renderer.

    Implements the renderer contract used by ``boids.simulation.Simulation``:
    ``draw(triangles, labels)`` presents one frame and paces it to the target
    FPS, and ``should_close()`` reports whether the user closed the window.
    """

    def __init__(self, width: int = None, height: int = None, title: str = None,
                 fps: int = None, on_resize=None):
        self.width = width or config.WINDOW["width"]
        self.height = height or config.WINDOW["height"]
        self.fps = config.WINDOW["fps"] if fps is None else fps
        self.on_resize = on_resize

        pygame.init()
        pygame.display.set_mode((self.width, self.height), DOUBLEBUF | OPENGL | RESIZABLE)
        pygame.display.set_caption(title or config.WINDOW["title"])

        self.input_handler = InputHandler(self)
        self.triangle_renderer = TriangleRenderer()
        self.text_renderer = TextRenderer()

        self.clock = pygame.time.Clock()
        self.running = True

        self._setup_gl()

    def _setup_gl(self):
        """Initialize OpenGL settings for 2D pixel-space drawing."""
        glClearColor(*config.COLORS["background"])
        glDisable(GL_DEPTH_TEST)
        glDisable(GL_CULL_FACE)
        self._apply_projection()

    def _apply_projection(self):
        # Top-left origin, y down, one unit per pixel
        glViewport(0, 0, self.width, self.height)
        glMatrixMode(GL_PROJECTION)
        glLoadIdentity()
        glOrtho(0, self.width, self.height, 0, -1, 1)
        glMatrixMode(GL_MODELVIEW)
        glLoadIdentity()

    def resize(self, width: int, height: int):
        """Refit the projection and tell ``on_resize`` (the flock's wrap extents)."""
        self.width = width
        self.height = height
        self._apply_projection()
        if self.on_resize is not None:
            self.on_resize(width, height)

    def should_close(self) -> bool:
        if not self.input_handler.poll():
            self.running = False
        return not self.running

    def draw(self, triangles, labels):
        """Render one frame and wait out the rest of the frame budget."""
        glClear(GL_COLOR_BUFFER_BIT)
        self.triangle_renderer.draw(triangles)
        self.text_renderer.draw_lines(labels, 10, 10, (self.width, self.height))
        pygame.display.flip()
        self.clock.tick(self.fps)

    def close(self):
        pygame.quit()
