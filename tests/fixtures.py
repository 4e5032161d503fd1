import math

import numpy as np

from ar_lipstick.constants import FACE_MESH_NUM_LANDMARKS, INNER_LIP, OUTER_LIP


def _place_on_ellipse(points, indices, center, radii):
    for i, idx in enumerate(indices):
        angle = 2 * math.pi * i / len(indices)
        points[idx] = (center[0] + radii[0] * math.cos(angle),
                       center[1] + radii[1] * math.sin(angle))


def make_face(center=(0.5, 0.5), outer_radii=(0.3, 0.2), inner_radii=(0.15, 0.05)):
    """A 478-point landmark array with outer and inner lips laid out as ellipses."""
    points = np.tile(np.array(center, dtype=np.float64), (FACE_MESH_NUM_LANDMARKS, 1))
    _place_on_ellipse(points, OUTER_LIP, center, outer_radii)
    _place_on_ellipse(points, INNER_LIP, center, inner_radii)
    return points


def white_frame(height=48, width=64, channels=3):
    return np.full((height, width, channels), 255, dtype=np.uint8)


def random_frame(height=48, width=64, channels=3, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, channels), dtype=np.uint8)
