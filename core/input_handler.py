"""Input handling for window events."""

import pygame
from pygame.locals import *


class InputHandler:
    """Turns pygame events into quit requests and window resizes."""

    def __init__(self, application):
        self.application = application

    def handle_event(self, event: pygame.event.Event) -> bool:
        """
        Handle a single pygame event.
        Returns False if the application should quit, True otherwise.
        """
        if event.type == QUIT:
            return False
        elif event.type == KEYDOWN:
            if event.key == K_ESCAPE:
                return False
        elif event.type == VIDEORESIZE:
            self.application.resize(event.w, event.h)

        return True

    def poll(self) -> bool:
        """Drain the event queue. Returns False once a quit was requested."""
        keep_running = True
        for event in pygame.event.get():
            if not self.handle_event(event):
                keep_running = False
        return keep_running
