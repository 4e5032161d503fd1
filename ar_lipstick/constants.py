"""
Constants and configuration values for the AR Lipstick Try-On
"""
from enum import Enum

# Refined MediaPipe Face Mesh emits 478 points (468 face + 10 iris)
FACE_MESH_NUM_LANDMARKS = 478


class RegionId(Enum):
    OUTER_LIP = "outer_lip"
    INNER_LIP = "inner_lip"
    UPPER_LIP = "upper_lip"
    LOWER_LIP = "lower_lip"


# MediaPipe Face Mesh landmark indices for lips, each one a closed contour.
# Outer lip: upper edge from the left corner (61) to the right corner (291),
# then the lower edge back towards the left corner.
OUTER_LIP = (61, 185, 40, 39, 37, 0, 267, 269, 270, 409,
             291, 375, 321, 405, 314, 17, 84, 181, 91, 146)
# Inner lip (mouth opening), same winding as the outer lip
INNER_LIP = (78, 191, 80, 81, 82, 13, 312, 311, 310, 415,
             308, 324, 318, 402, 317, 14, 87, 178, 88, 95)
# Upper lip: outer upper edge, then inner upper edge back to the left
UPPER_LIP = (61, 185, 40, 39, 37, 0, 267, 269, 270, 409, 291,
             308, 415, 310, 311, 312, 13, 82, 81, 80, 191, 78)
# Lower lip: outer lower edge, then inner lower edge back to the left
LOWER_LIP = (61, 146, 91, 181, 84, 17, 314, 405, 321, 375, 291,
             308, 324, 318, 402, 317, 14, 87, 178, 88, 95, 78)

REGION_INDICES = {
    RegionId.OUTER_LIP: OUTER_LIP,
    RegionId.INNER_LIP: INNER_LIP,
    RegionId.UPPER_LIP: UPPER_LIP,
    RegionId.LOWER_LIP: LOWER_LIP,
}


def _validate_region_table(table, num_landmarks):
    for region, indices in table.items():
        bad = [idx for idx in indices if not 0 <= idx < num_landmarks]
        if bad:
            raise ValueError(
                f"Region {region.value} references indices outside the "
                f"{num_landmarks}-point topology: {bad}"
            )


_validate_region_table(REGION_INDICES, FACE_MESH_NUM_LANDMARKS)


def region_indices(region):
    """Return the ordered landmark indices of a facial region."""
    return REGION_INDICES[RegionId(region)]


# Default lipstick style
DEFAULT_COLOR = "#FF6B6B"
DEFAULT_OPACITY = 0.7
DEFAULT_BLUR = 1
MAX_BLUR = 10

# Lipstick color presets (RGB hex)
LIPSTICK_COLORS = {
    "Classic Red": "#FF6B6B",
    "Red": "#C82B2B",
    "Pink": "#FF1493",
    "Coral": "#FA8072",
    "Nude": "#D7B8A9",
    "Burgundy": "#7D002B",
    "Purple": "#A349A4",
    "Orange": "#F07F3A",
}

# Camera and detector settings
CAMERA_WIDTH = 1280
CAMERA_HEIGHT = 720
DISPLAY_WIDTH = 640
DISPLAY_HEIGHT = 480
FRAME_INTERVAL_MS = 10

FACE_MESH_OPTIONS = {
    "max_num_faces": 1,
    "refine_landmarks": True,
    "min_detection_confidence": 0.5,
    "min_tracking_confidence": 0.5,
}
