"""2D geometry kernels shared by the Python API and the parallel update passes.

Screen coordinates: x grows right, y grows down.  A heading of ``theta`` points
along ``(sin(theta), -cos(theta))``, so heading 0 is "up" on screen and a
displacement of ``(0, +1)`` has heading pi.
"""

import math
import numpy as np
from numba import njit

TWO_PI = 2.0 * math.pi


@njit(cache=True)
def wrap_angle(angle: float) -> float:
    """Normalize an angle into [0, 2*pi)."""
    wrapped = angle % TWO_PI
    # -1e-17 % 2*pi rounds to exactly 2*pi
    if wrapped >= TWO_PI:
        wrapped -= TWO_PI
    return wrapped


@njit(cache=True)
def turn_delta(current: float, target: float) -> float:
    """Signed shortest turn from ``current`` to ``target``, in (-pi, pi]."""
    delta = wrap_angle(target - current)
    if delta > math.pi:
        delta -= TWO_PI
    return delta


@njit(cache=True)
def point_distance(ax: float, ay: float, bx: float, by: float) -> float:
    dx = bx - ax
    dy = by - ay
    return math.sqrt(dx * dx + dy * dy)


@njit(cache=True)
def direction_heading(dx: float, dy: float) -> float:
    """Heading of the displacement (dx, dy)."""
    return math.atan2(dx, -dy)


@njit(cache=True)
def wrap_coordinate(value: float, extent: float) -> float:
    """Toroidal wrap of a coordinate into [0, extent)."""
    wrapped = value % extent
    if wrapped >= extent:
        wrapped -= extent
    return wrapped


@njit(cache=True)
def rotate_vertices(shape: np.ndarray, rotation: float, theta: float) -> float:
    """
    Rotate a (3, 2) vertex array in place by ``theta`` radians.

    This is a delta: the vertices already carry every earlier rotation, so
    repeated calls compose.  Returns the new heading ``rotation + theta``
    normalized into [0, 2*pi), which the caller must store alongside the
    shape to keep the two in lockstep.
    """
    c = math.cos(theta)
    s = math.sin(theta)
    for k in range(3):
        x = shape[k, 0]
        y = shape[k, 1]
        shape[k, 0] = c * x - s * y
        shape[k, 1] = s * x + c * y
    return wrap_angle(rotation + theta)


def distance(p, q) -> float:
    """Euclidean distance between two 2D points."""
    return point_distance(float(p[0]), float(p[1]), float(q[0]), float(q[1]))


def heading_of(src, dst) -> float:
    """
    Heading that steers from ``src`` toward ``dst``.

    Follows the screen convention of this module: ``heading_of((0, 0), (0, 1))``
    is pi.  The result is in (-pi, pi]; pass it through ``wrap_angle`` before
    storing it as a rotation.
    """
    return direction_heading(float(dst[0]) - float(src[0]), float(dst[1]) - float(src[1]))
