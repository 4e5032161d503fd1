"""
Per-frame orchestration of the lipstick overlay

The controller receives one detection result per video frame, picks the
first face, rasterizes the lip region and composites the active style onto
its own copy of the frame.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum

import numpy as np

from .constants import RegionId
from .errors import DimensionMismatch, InvalidLandmarkIndex
from .lipstick_processor import MaskRasterizer, Style, StyleCompositor
from .utils import hex_to_rgb

logger = logging.getLogger(__name__)


class FrameState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    NO_FACE = "no_face"


@dataclass
class DetectionResult:
    faces: list = field(default_factory=list)

    @classmethod
    def from_mediapipe(cls, results):
        """Build from a Face Mesh solution result or a FaceLandmarker result."""
        # Both APIs keep the attribute and set it to None or [] without a face
        for name in ("multi_face_landmarks", "face_landmarks"):
            if hasattr(results, name):
                return cls(list(getattr(results, name) or []))
        raise TypeError(f"Unrecognized detection result: {type(results).__name__}")

    @classmethod
    def coerce(cls, result):
        """Accept a DetectionResult, a mapping with "faces" or a MediaPipe result."""
        if isinstance(result, cls):
            return result
        if isinstance(result, Mapping):
            if "faces" not in result:
                raise TypeError("Detection result mapping has no 'faces' key")
            return cls(list(result["faces"] or []))
        if hasattr(result, "faces"):
            return cls(list(result.faces or []))
        return cls.from_mediapipe(result)


class FrameController:
    def __init__(self, width=0, height=0, style=None, channel_order="RGB",
                 region=RegionId.OUTER_LIP, cutout=None):
        self.style = style if style is not None else Style()
        self.region = RegionId(region)
        self.state = FrameState.IDLE
        self.detection_paused = False
        self.available = True
        self.width = int(width)
        self.height = int(height)
        self.rasterizer = MaskRasterizer(self.width, self.height, cutout=cutout)
        self.compositor = StyleCompositor(self.width, self.height, channel_order=channel_order)
        self.frame_buffer = None
        self._last_frame = None
        self._last_render_error = None

    @property
    def lipstick_enabled(self):
        return self.style.enabled

    @property
    def size(self):
        return self.width, self.height

    def resize(self, width, height):
        """Recreate the intermediate buffers after a video dimension change."""
        self.width = int(width)
        self.height = int(height)
        self.rasterizer.resize(self.width, self.height)
        self.compositor.resize(self.width, self.height)
        logger.info("Frame size changed to %dx%d", self.width, self.height)

    def _load_frame(self, frame):
        height, width = frame.shape[:2]
        if (width, height) != self.size:
            self.resize(width, height)
        if self.frame_buffer is None or self.frame_buffer.shape != frame.shape:
            self.frame_buffer = np.empty_like(frame)
        np.copyto(self.frame_buffer, frame)
        self._last_frame = frame
        return self.frame_buffer

    def on_result(self, result, frame):
        """
        Render one frame

        Parameters:
        - result: DetectionResult, a mapping with "faces", or a raw MediaPipe
          face result; anything else raises TypeError
        - frame: Current video frame, left unmodified

        Returns:
        - np.array: The controller's frame buffer with the overlay applied
        """
        if self.detection_paused or not self.available:
            logger.debug("Detection result ignored, controller is paused or unavailable")
            return self.frame_buffer

        result = DetectionResult.coerce(result)
        buffer = self._load_frame(frame)

        if not result.faces:
            self.state = FrameState.NO_FACE
            return buffer

        if len(result.faces) > 1:
            logger.debug("Ignoring %d additional face(s)", len(result.faces) - 1)
        self.state = FrameState.ACTIVE

        if self.lipstick_enabled:
            self._render(result.faces[0], buffer)
        return buffer

    def _render(self, landmarks, buffer):
        try:
            mask = self.rasterizer.rasterize(landmarks, self.region)
            try:
                self.compositor.composite(mask, self.style, buffer)
            except DimensionMismatch as e:
                logger.warning("%s; resizing buffers and retrying", e)
                self.resize(buffer.shape[1], buffer.shape[0])
                mask = self.rasterizer.rasterize(landmarks, self.region)
                self.compositor.composite(mask, self.style, buffer)
        except (InvalidLandmarkIndex, DimensionMismatch) as e:
            # Same error every frame until the input changes: warn once
            message = str(e)
            if message != self._last_render_error:
                logger.warning("Lipstick skipped: %s", message)
            else:
                logger.debug("Lipstick skipped: %s", message)
            self._last_render_error = message
            np.copyto(buffer, self._last_frame)
        else:
            self._last_render_error = None

    def clear_overlay(self):
        if self.frame_buffer is not None and self._last_frame is not None:
            np.copyto(self.frame_buffer, self._last_frame)

    # Style setters, visible from the next frame on

    def set_color(self, color):
        self.style = replace(self.style, color=hex_to_rgb(color))

    def set_opacity(self, opacity):
        self.style = replace(self.style, opacity=min(max(float(opacity), 0.0), 1.0))

    def set_blur(self, blur_radius):
        self.style = replace(self.style, blur_radius=max(int(blur_radius), 0))

    def set_enabled(self, enabled):
        self.style = replace(self.style, enabled=bool(enabled))

    def select_preset_color(self, color):
        """Set a lipstick color and make sure the lipstick is shown"""
        self.set_color(color)
        self.set_enabled(True)

    def reset_to_natural(self):
        """Disable the lipstick and remove it from the last rendered frame"""
        self.set_enabled(False)
        self.clear_overlay()

    # Detection control

    def pause_detection(self):
        self.detection_paused = True

    def resume_detection(self):
        self.detection_paused = False

    def toggle_detection(self):
        self.detection_paused = not self.detection_paused
        return not self.detection_paused

    def mark_unavailable(self, reason):
        """Disable the controller after the camera or detector failed."""
        logger.error("Lipstick pipeline unavailable: %s", reason)
        self.available = False

    def mark_available(self):
        """Re-enable the controller once the camera and detector are running."""
        if not self.available:
            logger.info("Lipstick pipeline available again")
        self.available = True
