"""
Elementary axis rotations.

All angles are in degrees. Each function rotates the vector (active rotation)
counter-clockwise about the named axis; a negative angle undoes it.
"""

import math
import numpy as np


def rot_x(vec, angle_deg: float) -> np.ndarray:
    """Rotate ``vec`` about the x axis."""
    c = math.cos(math.radians(angle_deg))
    s = math.sin(math.radians(angle_deg))
    return np.array([
        vec[0],
        c * vec[1] - s * vec[2],
        s * vec[1] + c * vec[2],
    ])


def rot_y(vec, angle_deg: float) -> np.ndarray:
    """Rotate ``vec`` about the y axis."""
    c = math.cos(math.radians(angle_deg))
    s = math.sin(math.radians(angle_deg))
    return np.array([
        c * vec[0] + s * vec[2],
        vec[1],
        -s * vec[0] + c * vec[2],
    ])


def rot_z(vec, angle_deg: float) -> np.ndarray:
    """Rotate ``vec`` about the z axis."""
    c = math.cos(math.radians(angle_deg))
    s = math.sin(math.radians(angle_deg))
    return np.array([
        c * vec[0] - s * vec[1],
        s * vec[0] + c * vec[1],
        vec[2],
    ])
