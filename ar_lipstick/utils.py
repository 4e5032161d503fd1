"""
Utility functions for the AR Lipstick Try-On
"""
import re
from typing import NamedTuple, Optional

import numpy as np

from .errors import InvalidColor, InvalidLandmarkIndex

_HEX_COLOR = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


class Landmark(NamedTuple):
    x: float
    y: float
    z: Optional[float] = None


def hex_to_rgb(hex_color):
    """
    Convert a hex color string to an RGB tuple

    Parameters:
    - hex_color: Color as '#RRGGBB' (case-insensitive, '#' optional)

    Returns:
    - tuple: (r, g, b) integers in 0..255
    """
    match = _HEX_COLOR.match(hex_color) if isinstance(hex_color, str) else None
    if match is None:
        raise InvalidColor(hex_color)
    return tuple(int(group, 16) for group in match.groups())


def rgb_to_hex(r, g, b):
    """Convert RGB components to a lowercase '#rrggbb' string"""
    for value in (r, g, b):
        if not 0 <= int(value) <= 255:
            raise InvalidColor((r, g, b))
    return "#{:02x}{:02x}{:02x}".format(int(r), int(g), int(b))


def blend_colors(color1, color2, ratio):
    """
    Linearly blend two hex colors

    Parameters:
    - color1: Start color (hex)
    - color2: End color (hex)
    - ratio: 0.0 returns color1, 1.0 returns color2

    Returns:
    - str: Blended color as hex, or color1 if either color is malformed
    """
    try:
        rgb1 = hex_to_rgb(color1)
        rgb2 = hex_to_rgb(color2)
    except InvalidColor:
        return color1

    blended = [round(c1 * (1 - ratio) + c2 * ratio) for c1, c2 in zip(rgb1, rgb2)]
    return rgb_to_hex(*blended)


def landmarks_to_array(landmarks):
    """
    Convert detector landmarks to an (N, 2) array of normalized coordinates

    Accepts a MediaPipe NormalizedLandmarkList, a list of objects with x/y
    attributes, a sequence of (x, y[, z]) tuples or an (N, 2|3) array.
    """
    if hasattr(landmarks, "landmark"):
        landmarks = landmarks.landmark

    if isinstance(landmarks, np.ndarray):
        points = landmarks.astype(np.float64, copy=False)
        if points.ndim != 2 or points.shape[1] < 2:
            raise ValueError(f"Expected an (N, 2) or (N, 3) landmark array, got {points.shape}")
        return points[:, :2]

    coords = []
    for point in landmarks:
        if hasattr(point, "x"):
            coords.append((point.x, point.y))
        else:
            coords.append((point[0], point[1]))
    return np.array(coords, dtype=np.float64).reshape(-1, 2)


def region_to_pixels(points, indices, width, height):
    """
    Map the landmarks of a region to pixel space

    Parameters:
    - points: (N, 2) normalized landmark coordinates
    - indices: Ordered landmark indices of the region
    - width, height: Frame size in pixels

    Returns:
    - np.array: (len(indices), 2) float pixel coordinates, in region order
    """
    num_landmarks = len(points)
    for idx in indices:
        if not 0 <= idx < num_landmarks:
            raise InvalidLandmarkIndex(idx, num_landmarks)

    polygon = points[list(indices)] if len(indices) else np.empty((0, 2))
    return polygon * np.array([width, height], dtype=np.float64)
