"""
Exceptions raised by the lipstick pipeline
"""


class LipstickError(Exception):
    """Base class for all lipstick pipeline errors."""


class InvalidLandmarkIndex(LipstickError, IndexError):
    """A region references a landmark the detector did not supply."""

    def __init__(self, index, num_landmarks):
        self.index = index
        self.num_landmarks = num_landmarks
        super().__init__(
            f"Landmark index {index} is out of range for a frame of {num_landmarks} landmarks"
        )


class DimensionMismatch(LipstickError, ValueError):
    """Mask and destination frame sizes disagree."""

    def __init__(self, mask_shape, frame_shape):
        self.mask_shape = tuple(mask_shape)
        self.frame_shape = tuple(frame_shape)
        super().__init__(
            f"Mask of shape {self.mask_shape} does not match frame of shape {self.frame_shape}"
        )


class InvalidColor(LipstickError, ValueError):
    """Color string is not a 6-digit hex RGB value."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid color {value!r}, expected '#RRGGBB'")


class PipelineUnavailable(LipstickError):
    """Camera or landmark detector could not be started."""
