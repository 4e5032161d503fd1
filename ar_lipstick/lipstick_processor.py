"""
Lipstick processing logic for the AR Lipstick Try-On

The pipeline has two stages. Rasterization turns the landmarks of a lip
region into a coverage mask. Compositing clips a solid color layer to that
mask (Porter-Duff source-in), softens it with a Gaussian blur and multiplies
it onto the frame.
"""
import logging
from dataclasses import dataclass, field

import cv2
import numpy as np

from .constants import DEFAULT_BLUR, DEFAULT_COLOR, DEFAULT_OPACITY, RegionId, region_indices
from .errors import DimensionMismatch
from .utils import hex_to_rgb, landmarks_to_array, region_to_pixels, rgb_to_hex

logger = logging.getLogger(__name__)

CHANNEL_ORDERS = ("RGB", "BGR")


@dataclass(frozen=True)
class Style:
    color: tuple = field(default_factory=lambda: hex_to_rgb(DEFAULT_COLOR))
    opacity: float = DEFAULT_OPACITY
    blur_radius: int = DEFAULT_BLUR
    enabled: bool = True

    def __post_init__(self):
        if len(self.color) != 3 or not all(0 <= int(c) <= 255 for c in self.color):
            raise ValueError(f"Style color must be an RGB triple, got {self.color!r}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"Style opacity must be within [0, 1], got {self.opacity}")
        if self.blur_radius < 0:
            raise ValueError(f"Style blur radius must be non-negative, got {self.blur_radius}")

    @classmethod
    def from_hex(cls, color, opacity=DEFAULT_OPACITY, blur_radius=DEFAULT_BLUR, enabled=True):
        return cls(hex_to_rgb(color), opacity, blur_radius, enabled)

    @property
    def hex_color(self):
        return rgb_to_hex(*self.color)


def _fill_nonzero(polygon, out):
    """Set pixels whose centers have a non-zero winding number around polygon."""
    height, width = out.shape
    x0 = max(int(np.floor(polygon[:, 0].min())), 0)
    x1 = min(int(np.ceil(polygon[:, 0].max())), width)
    y0 = max(int(np.floor(polygon[:, 1].min())), 0)
    y1 = min(int(np.ceil(polygon[:, 1].max())), height)
    if x0 >= x1 or y0 >= y1:
        return out

    px = np.arange(x0, x1, dtype=np.float64) + 0.5
    py = np.arange(y0, y1, dtype=np.float64)[:, np.newaxis] + 0.5
    winding = np.zeros((y1 - y0, x1 - x0), dtype=np.int32)

    # Implicit closing edge from the last vertex back to the first
    for (ax, ay), (bx, by) in zip(polygon, np.roll(polygon, -1, axis=0)):
        if ay == by:
            continue
        cross = (bx - ax) * (py - ay) - (px - ax) * (by - ay)
        if ay < by:
            winding += ((ay <= py) & (py < by)) & (cross > 0)
        else:
            winding -= ((by <= py) & (py < ay)) & (cross < 0)

    out[y0:y1, x0:x1] = winding != 0
    return out


def rasterize_region(landmarks, indices, width, height, out=None):
    """
    Rasterize a landmark region into a coverage mask

    Parameters:
    - landmarks: Face landmarks in normalized [0, 1] coordinates
    - indices: Ordered landmark indices tracing the region contour
    - width, height: Frame size in pixels
    - out: Optional reusable (height, width) float32 buffer

    Returns:
    - np.array: (height, width) float32 mask, 1.0 inside the polygon and 0.0
      outside, sampled at pixel centers with the non-zero winding rule
    """
    if out is None:
        out = np.zeros((height, width), dtype=np.float32)
    else:
        if out.shape != (height, width):
            raise DimensionMismatch(out.shape, (height, width))
        out.fill(0.0)

    if len(indices) == 0:
        return out

    polygon = region_to_pixels(landmarks_to_array(landmarks), indices, width, height)
    return _fill_nonzero(polygon, out)


class MaskRasterizer:
    """Rasterizes a lip region into a buffer reused from frame to frame."""

    def __init__(self, width=0, height=0, cutout=None):
        self.cutout = RegionId(cutout) if cutout is not None else None
        self._mask = None
        self._cutout_mask = None
        self.resize(width, height)

    @property
    def size(self):
        return self.width, self.height

    def resize(self, width, height):
        self.width = int(width)
        self.height = int(height)
        self._mask = np.zeros((self.height, self.width), dtype=np.float32)
        self._cutout_mask = np.zeros_like(self._mask) if self.cutout is not None else None
        logger.debug("Mask buffers resized to %dx%d", self.width, self.height)

    def rasterize(self, landmarks, region=RegionId.OUTER_LIP):
        mask = rasterize_region(
            landmarks, region_indices(region), self.width, self.height, out=self._mask
        )
        if self.cutout is not None and self.cutout != RegionId(region):
            # Cut out the mouth opening
            cutout = rasterize_region(
                landmarks, region_indices(self.cutout), self.width, self.height,
                out=self._cutout_mask,
            )
            mask[cutout > 0] = 0.0
        return mask


class StyleCompositor:
    """Blends a clipped, blurred color layer onto frames in place."""

    def __init__(self, width=0, height=0, channel_order="RGB"):
        if channel_order not in CHANNEL_ORDERS:
            raise ValueError(f"Unsupported channel order {channel_order!r}")
        self.channel_order = channel_order
        self._layer = None
        self.resize(width, height)

    def resize(self, width, height):
        self._layer = np.zeros((int(height), int(width)), dtype=np.float32)

    def _layer_color(self, style):
        color = np.asarray(style.color, dtype=np.float32) / 255.0
        return color[::-1] if self.channel_order == "BGR" else color

    def composite(self, mask, style, destination):
        """
        Apply a lipstick style to the destination frame in place

        Parameters:
        - mask: (H, W) coverage mask in [0, 1]
        - style: Style to apply; disabled styles leave the frame untouched
        - destination: (H, W, 3|4) uint8 frame
        """
        if not style.enabled:
            return

        frame_hw = destination.shape[:2]
        if mask.shape != frame_hw:
            raise DimensionMismatch(mask.shape, frame_hw)
        if self._layer.shape != frame_hw:
            self.resize(frame_hw[1], frame_hw[0])

        # Solid color clipped to the mask: only the alpha varies
        layer = self._layer
        np.multiply(mask, style.opacity, out=layer, casting="unsafe")

        if style.blur_radius > 0:
            layer[...] = cv2.GaussianBlur(
                layer, (0, 0), sigmaX=float(style.blur_radius),
                borderType=cv2.BORDER_CONSTANT,
            )

        rows = np.flatnonzero(layer.any(axis=1))
        if rows.size == 0:
            return
        cols = np.flatnonzero(layer.any(axis=0))
        y0, y1 = rows[0], rows[-1] + 1
        x0, x1 = cols[0], cols[-1] + 1

        # Multiply blend, global alpha applied on top of the layer alpha
        alpha = (layer[y0:y1, x0:x1] * style.opacity)[..., np.newaxis]
        roi = destination[y0:y1, x0:x1]
        base = roi[..., :3].astype(np.float32) / 255.0
        blended = base * (1.0 - alpha) + base * self._layer_color(style) * alpha
        roi[..., :3] = np.clip(np.rint(blended * 255.0), 0, 255).astype(np.uint8)

        if destination.shape[2] == 4:
            dst_alpha = roi[..., 3:].astype(np.float32) / 255.0
            out_alpha = alpha + dst_alpha * (1.0 - alpha)
            roi[..., 3:] = np.clip(np.rint(out_alpha * 255.0), 0, 255).astype(np.uint8)


def apply_lipstick(image, landmarks, style, region=RegionId.OUTER_LIP, channel_order="RGB"):
    """
    Apply lipstick to a copy of a single image

    Parameters:
    - image: Input image (RGB by default, pass channel_order="BGR" for OpenCV images)
    - landmarks: Face landmarks from MediaPipe
    - style: Style to apply
    - region: Lip region to color
    - channel_order: Channel order of the image

    Returns:
    - Image with lipstick applied
    """
    h, w = image.shape[:2]
    result = image.copy()
    mask = rasterize_region(landmarks, region_indices(region), w, h)
    StyleCompositor(w, h, channel_order=channel_order).composite(mask, style, result)
    return result
