import math
import unittest

import numpy as np

from fixtures import make_face, random_frame, white_frame

from ar_lipstick.constants import RegionId
from ar_lipstick.errors import DimensionMismatch, InvalidLandmarkIndex
from ar_lipstick.lipstick_processor import (
    MaskRasterizer,
    Style,
    StyleCompositor,
    apply_lipstick,
    rasterize_region,
)
from ar_lipstick.utils import Landmark

SQUARE = np.array([[0.25, 0.25], [0.75, 0.25], [0.75, 0.75], [0.25, 0.75]])

RED = Style.from_hex("#FF0000", opacity=1.0, blur_radius=0)


class TestRasterizeRegion(unittest.TestCase):
    def test_square_interior_and_exterior(self):
        mask = rasterize_region(SQUARE, (0, 1, 2, 3), width=8, height=8)

        self.assertEqual(mask.shape, (8, 8))
        self.assertEqual(mask.dtype, np.float32)
        expected = np.zeros((8, 8), dtype=np.float32)
        expected[2:6, 2:6] = 1.0
        np.testing.assert_array_equal(mask, expected)

    def test_order_is_closed_back_to_first_point(self):
        # Triangle given with three points only, the closing edge is implicit
        points = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        mask = rasterize_region(points, (0, 1, 2), width=10, height=10)
        self.assertEqual(mask[1, 1], 1.0)
        self.assertEqual(mask[8, 8], 0.0)

    def test_empty_region_gives_empty_mask(self):
        mask = rasterize_region(SQUARE, (), width=5, height=4)
        self.assertEqual(mask.shape, (4, 5))
        self.assertFalse(mask.any())

    def test_missing_landmark_index(self):
        with self.assertRaises(InvalidLandmarkIndex):
            rasterize_region(SQUARE, (0, 1, 4), width=8, height=8)

    def test_self_intersecting_contour_uses_nonzero_winding(self):
        # Pentagram: the central pentagon has winding number 2
        star = []
        for k in range(5):
            angle = math.radians(-90 + 72 * k)
            star.append((0.5 + 0.4 * math.cos(angle), 0.5 + 0.4 * math.sin(angle)))
        mask = rasterize_region(np.array(star), (0, 2, 4, 1, 3), width=40, height=40)

        self.assertEqual(mask[20, 20], 1.0)
        self.assertEqual(mask[7, 20], 1.0)
        self.assertEqual(mask[0, 0], 0.0)

    def test_polygon_outside_frame_is_clipped(self):
        points = SQUARE - 0.5
        mask = rasterize_region(points, (0, 1, 2, 3), width=8, height=8)
        self.assertTrue((mask[:2, :2] == 1.0).all())
        self.assertEqual(mask.sum(), 4.0)

    def test_reuses_output_buffer(self):
        out = np.ones((8, 8), dtype=np.float32)
        mask = rasterize_region(SQUARE, (0, 1, 2, 3), width=8, height=8, out=out)
        self.assertIs(mask, out)
        self.assertEqual(out[0, 0], 0.0)
        self.assertEqual(out.sum(), 16.0)

    def test_output_buffer_must_match_frame(self):
        with self.assertRaises(DimensionMismatch):
            rasterize_region(SQUARE, (0, 1, 2, 3), width=8, height=8,
                             out=np.zeros((4, 4), dtype=np.float32))

    def test_accepts_landmark_objects(self):
        landmarks = [Landmark(x, y, 0.0) for x, y in SQUARE]
        mask = rasterize_region(landmarks, (0, 1, 2, 3), width=8, height=8)
        self.assertEqual(mask.sum(), 16.0)


class TestMaskRasterizer(unittest.TestCase):
    def test_outer_lip_covers_mouth(self):
        rasterizer = MaskRasterizer(64, 48)
        mask = rasterizer.rasterize(make_face())
        self.assertEqual(mask.shape, (48, 64))
        self.assertEqual(mask[24, 32], 1.0)
        self.assertEqual(mask[24, 46], 1.0)
        self.assertEqual(mask[0, 0], 0.0)

    def test_cutout_removes_mouth_opening(self):
        rasterizer = MaskRasterizer(64, 48, cutout=RegionId.INNER_LIP)
        mask = rasterizer.rasterize(make_face())
        self.assertEqual(mask[24, 32], 0.0)
        self.assertEqual(mask[24, 46], 1.0)

    def test_buffer_is_reused_between_frames(self):
        rasterizer = MaskRasterizer(64, 48)
        first = rasterizer.rasterize(make_face())
        second = rasterizer.rasterize(make_face(center=(0.2, 0.2), outer_radii=(0.05, 0.05)))
        self.assertIs(first, second)
        self.assertEqual(second[24, 46], 0.0)

    def test_resize(self):
        rasterizer = MaskRasterizer(64, 48)
        rasterizer.resize(32, 24)
        self.assertEqual(rasterizer.size, (32, 24))
        self.assertEqual(rasterizer.rasterize(make_face()).shape, (24, 32))


class TestStyle(unittest.TestCase):
    def test_from_hex(self):
        style = Style.from_hex("#FF6B6B", opacity=0.5, blur_radius=2)
        self.assertEqual(style.color, (255, 107, 107))
        self.assertEqual(style.hex_color, "#ff6b6b")
        self.assertTrue(style.enabled)

    def test_rejects_out_of_range_values(self):
        with self.assertRaises(ValueError):
            Style(opacity=1.5)
        with self.assertRaises(ValueError):
            Style(blur_radius=-1)
        with self.assertRaises(ValueError):
            Style(color=(0, 0, 300))


class TestStyleCompositor(unittest.TestCase):
    def test_red_on_white_is_red(self):
        frame = white_frame(channels=4)
        mask = np.ones((48, 64), dtype=np.float32)

        StyleCompositor(64, 48).composite(mask, RED, frame)

        expected = np.zeros_like(frame)
        expected[..., 0] = 255
        expected[..., 3] = 255
        np.testing.assert_array_equal(frame, expected)

    def test_alpha_is_composited_over_transparent_frame(self):
        frame = white_frame(channels=4)
        frame[..., 3] = 0
        frame[:, 32:, 3] = 128
        style = Style.from_hex("#FF0000", opacity=0.5, blur_radius=0)

        StyleCompositor(64, 48).composite(np.ones((48, 64), dtype=np.float32), style, frame)

        # a = 0.25: 0.25 * 255 over a clear pixel, 0.25 * 255 + 128 * 0.75 over half alpha
        self.assertEqual(tuple(frame[10, 10]), (255, 191, 191, 64))
        self.assertEqual(tuple(frame[10, 40]), (255, 191, 191, 160))

    def test_transparent_pixels_outside_mask_stay_untouched(self):
        frame = random_frame(channels=4)
        frame[..., 3] = 0
        original = frame.copy()
        mask = np.zeros((48, 64), dtype=np.float32)
        mask[10:20, 10:20] = 1.0

        StyleCompositor(64, 48).composite(mask, RED, frame)

        np.testing.assert_array_equal(frame[30:, :], original[30:, :])
        np.testing.assert_array_equal(frame[:, 30:], original[:, 30:])
        self.assertTrue((frame[10:20, 10:20, 3] == 255).all())

    def test_empty_mask_leaves_transparent_frame_untouched(self):
        frame = np.zeros((48, 64, 4), dtype=np.uint8)
        style = Style.from_hex("#FF0000", opacity=0.5, blur_radius=3)

        StyleCompositor(64, 48).composite(np.zeros((48, 64), dtype=np.float32), style, frame)

        self.assertFalse(frame.any())

    def test_multiply_with_white_returns_style_color(self):
        frame = white_frame()
        style = Style.from_hex("#FF6B6B", opacity=1.0, blur_radius=0)
        StyleCompositor(64, 48).composite(np.ones((48, 64), dtype=np.float32), style, frame)
        self.assertTrue((frame == np.array([255, 107, 107], dtype=np.uint8)).all())

    def test_bgr_frames(self):
        frame = white_frame()
        StyleCompositor(64, 48, channel_order="BGR").composite(
            np.ones((48, 64), dtype=np.float32), RED, frame)
        self.assertEqual(tuple(frame[10, 10]), (0, 0, 255))

    def test_disabled_style_leaves_frame_untouched(self):
        frame = random_frame()
        original = frame.copy()
        style = Style.from_hex("#FF0000", opacity=1.0, blur_radius=3, enabled=False)

        StyleCompositor(64, 48).composite(np.ones((48, 64), dtype=np.float32), style, frame)

        np.testing.assert_array_equal(frame, original)

    def test_empty_mask_leaves_frame_untouched(self):
        frame = random_frame(channels=4)
        original = frame.copy()
        style = Style.from_hex("#123456", opacity=0.8, blur_radius=4)

        StyleCompositor(64, 48).composite(np.zeros((48, 64), dtype=np.float32), style, frame)

        np.testing.assert_array_equal(frame, original)

    def test_opacity_is_applied_twice(self):
        frame = white_frame()
        black = Style.from_hex("#000000", opacity=0.5, blur_radius=0)

        StyleCompositor(64, 48).composite(np.ones((48, 64), dtype=np.float32), black, frame)

        # a = (mask * 0.5) * 0.5 = 0.25, so 255 * 0.75
        self.assertTrue((frame == 191).all())

    def test_blur_bleeds_past_mask_edge(self):
        frame = white_frame()
        mask = np.zeros((48, 64), dtype=np.float32)
        mask[20:28, 20:28] = 1.0
        style = Style.from_hex("#FF0000", opacity=1.0, blur_radius=2)

        StyleCompositor(64, 48).composite(mask, style, frame)

        self.assertLess(frame[24, 29, 1], 255)
        self.assertEqual(tuple(frame[0, 0]), (255, 255, 255))
        self.assertEqual(frame[24, 24, 0], 255)

    def test_dimension_mismatch(self):
        with self.assertRaises(DimensionMismatch):
            StyleCompositor(64, 48).composite(np.ones((10, 10), dtype=np.float32), RED,
                                              white_frame())

    def test_layer_follows_frame_size(self):
        compositor = StyleCompositor(8, 8)
        frame = white_frame(24, 32)
        compositor.composite(np.ones((24, 32), dtype=np.float32), RED, frame)
        self.assertEqual(tuple(frame[23, 31]), (255, 0, 0))

    def test_unknown_channel_order(self):
        with self.assertRaises(ValueError):
            StyleCompositor(8, 8, channel_order="HSV")


class TestApplyLipstick(unittest.TestCase):
    def test_returns_colored_copy(self):
        image = white_frame()
        result = apply_lipstick(image, make_face(), RED)

        self.assertEqual(tuple(result[24, 32]), (255, 0, 0))
        self.assertEqual(tuple(result[0, 0]), (255, 255, 255))
        self.assertTrue((image == 255).all())

    def test_opencv_images(self):
        result = apply_lipstick(white_frame(), make_face(), RED, channel_order="BGR")
        self.assertEqual(tuple(result[24, 32]), (0, 0, 255))


if __name__ == "__main__":
    unittest.main()
