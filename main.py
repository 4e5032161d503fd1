import argparse
import logging
import sys
import tkinter as tk
from tkinter import ttk, colorchooser

import cv2
import mediapipe as mp
from PIL import Image, ImageTk

from ar_lipstick.constants import (
    CAMERA_HEIGHT,
    CAMERA_WIDTH,
    DEFAULT_BLUR,
    DEFAULT_COLOR,
    DEFAULT_OPACITY,
    DISPLAY_HEIGHT,
    DISPLAY_WIDTH,
    FACE_MESH_OPTIONS,
    FRAME_INTERVAL_MS,
    LIPSTICK_COLORS,
    MAX_BLUR,
    RegionId,
)
from ar_lipstick.errors import InvalidColor, PipelineUnavailable
from ar_lipstick.frame_controller import FrameController, FrameState
from ar_lipstick.lipstick_processor import Style
from ar_lipstick.metrics import FpsMonitor
from ar_lipstick.utils import hex_to_rgb

logger = logging.getLogger(__name__)

# Initialize MediaPipe Face Mesh solution
mp_face_mesh = mp.solutions.face_mesh
mp_drawing = mp.solutions.drawing_utils
mp_drawing_styles = mp.solutions.drawing_styles


def open_camera(index):
    """Open a webcam at the try-on resolution, or raise PipelineUnavailable"""
    webcam = cv2.VideoCapture(index)
    if not webcam.isOpened():
        raise PipelineUnavailable(f"Camera {index} could not be opened")
    webcam.set(cv2.CAP_PROP_FRAME_WIDTH, CAMERA_WIDTH)
    webcam.set(cv2.CAP_PROP_FRAME_HEIGHT, CAMERA_HEIGHT)
    return webcam


class LipstickTryOnApp:
    def __init__(self, window, window_title, camera_index=0, cut_out_mouth=False):
        self.window = window
        self.window.title(window_title)

        # Create main container frames
        self.main_container = ttk.Frame(window)
        self.main_container.pack(fill=tk.BOTH, expand=True)

        # Frame for the webcam feed and the status line
        self.right_container = ttk.Frame(self.main_container)
        self.right_container.pack(side=tk.RIGHT, padx=10, pady=10, fill=tk.BOTH)

        self.label_webcam = ttk.Label(self.right_container)
        self.label_webcam.pack(side=tk.TOP)

        self.status_var = tk.StringVar(value="Initializing camera...")
        ttk.Label(self.right_container, textvariable=self.status_var).pack(
            side=tk.BOTTOM, anchor=tk.W, pady=5)

        # Face tracking and FPS, refreshed every frame
        self.tracking_var = tk.StringVar(value="")
        ttk.Label(self.right_container, textvariable=self.tracking_var).pack(
            side=tk.BOTTOM, anchor=tk.W)

        # Frame for the controls
        self.frame_controls = ttk.Frame(self.main_container)
        self.frame_controls.pack(side=tk.LEFT, padx=10, pady=10, fill=tk.Y)

        # Preset colors, with the color as button background
        self.frame_presets = ttk.LabelFrame(self.frame_controls, text="Preset Colors")
        self.frame_presets.pack(fill=tk.X, padx=5, pady=5)

        for name, color in LIPSTICK_COLORS.items():
            r, g, b = hex_to_rgb(color)
            brightness = (0.299 * r + 0.587 * g + 0.114 * b) / 255
            text_color = "black" if brightness > 0.5 else "white"

            btn = tk.Button(
                self.frame_presets,
                text=name,
                bg=color,
                fg=text_color,
                width=12,
                command=lambda c=color, n=name: self.select_preset_color(c, n)
            )
            btn.pack(side=tk.TOP, fill=tk.X, padx=2, pady=2)

        ttk.Button(self.frame_controls, text="Choose Custom Color",
                   command=self.choose_custom_color).pack(fill=tk.X, padx=5, pady=5)

        # Display current color
        self.frame_current_color = ttk.LabelFrame(self.frame_controls, text="Current Color")
        self.frame_current_color.pack(fill=tk.X, padx=5, pady=5)
        self.current_color_canvas = tk.Canvas(self.frame_current_color, width=50, height=30,
                                              bg=DEFAULT_COLOR)
        self.current_color_canvas.pack(padx=5, pady=5)

        # Opacity and blur sliders
        self.frame_settings = ttk.LabelFrame(self.frame_controls, text="Settings")
        self.frame_settings.pack(fill=tk.X, padx=5, pady=5)

        self.opacity_var = tk.DoubleVar(value=DEFAULT_OPACITY)
        ttk.Label(self.frame_settings, text="Opacity").pack(anchor=tk.W, padx=5)
        tk.Scale(self.frame_settings, from_=0.0, to=1.0, resolution=0.1, orient=tk.HORIZONTAL,
                 variable=self.opacity_var, command=self.on_opacity_change).pack(fill=tk.X, padx=5)

        self.blur_var = tk.IntVar(value=DEFAULT_BLUR)
        ttk.Label(self.frame_settings, text="Blur").pack(anchor=tk.W, padx=5)
        tk.Scale(self.frame_settings, from_=0, to=MAX_BLUR, resolution=1, orient=tk.HORIZONTAL,
                 variable=self.blur_var, command=self.on_blur_change).pack(fill=tk.X, padx=5)

        # Action buttons
        ttk.Button(self.frame_controls, text="Reset to Natural",
                   command=self.reset_to_natural).pack(fill=tk.X, padx=5, pady=5)
        self.toggle_camera_button = ttk.Button(self.frame_controls, text="Stop Camera",
                                               command=self.toggle_camera)
        self.toggle_camera_button.pack(fill=tk.X, padx=5, pady=5)

        # Checkbox for showing face mesh
        self.show_mesh_var = tk.BooleanVar(value=False)
        ttk.Checkbutton(self.frame_controls, text="Show Face Mesh",
                        variable=self.show_mesh_var).pack(anchor=tk.W, padx=5, pady=10)

        # Lipstick pipeline, fed with RGB frames
        self.controller = FrameController(
            style=Style.from_hex(DEFAULT_COLOR, DEFAULT_OPACITY, DEFAULT_BLUR),
            channel_order="RGB",
            cutout=RegionId.INNER_LIP if cut_out_mouth else None,
        )
        self.fps_monitor = FpsMonitor()

        self.camera_index = camera_index
        self.webcam = None
        self.face_mesh = None
        try:
            self.webcam = open_camera(camera_index)
            self.start_detector()
            self.update_status("Ready! Position your face in the camera")
        except PipelineUnavailable as e:
            self.pipeline_unavailable(str(e))

        # Start the video capture loop
        self.update()

        # Set window close handler
        self.window.protocol("WM_DELETE_WINDOW", self.on_closing)

        # Bind key events
        self.window.bind('<k>', self.switch_camera)

    def start_detector(self):
        """Create the Face Mesh detector, or raise PipelineUnavailable"""
        if self.face_mesh is None:
            try:
                self.face_mesh = mp_face_mesh.FaceMesh(**FACE_MESH_OPTIONS)
            except RuntimeError as e:
                raise PipelineUnavailable(f"Face detection failed to initialize: {e}") from e

    def update_status(self, message):
        self.status_var.set(message)

    def pipeline_unavailable(self, reason):
        self.controller.mark_unavailable(reason)
        self.update_status(f"Failed to initialize: {reason}. Please check camera permissions.")

    def select_preset_color(self, color, color_name):
        """Set lipstick color to a preset color"""
        self.controller.select_preset_color(color)
        self.current_color_canvas.config(bg=color)
        self.update_status(f"Lipstick applied: {color_name}")

    def choose_custom_color(self):
        """Open color picker for custom lipstick color"""
        color_result = colorchooser.askcolor(initialcolor=self.controller.style.hex_color,
                                             title="Choose Lipstick Color")

        if color_result[1]:  # If user didn't cancel
            try:
                self.controller.select_preset_color(color_result[1])
            except InvalidColor as e:
                self.update_status(str(e))
                return
            self.current_color_canvas.config(bg=self.controller.style.hex_color)
            self.update_status("Lipstick applied: Custom")

    def on_opacity_change(self, value):
        self.controller.set_opacity(value)

    def on_blur_change(self, value):
        self.controller.set_blur(int(float(value)))

    def reset_to_natural(self):
        """Reset to natural lips (disable lipstick effect)"""
        self.controller.reset_to_natural()
        if self.controller.frame_buffer is not None:
            self.show_frame(self.controller.frame_buffer)
        self.update_status("Reset to natural lips")

    def toggle_camera(self):
        """Pause or resume detection, holding the last frame while paused"""
        if self.controller.toggle_detection():
            self.fps_monitor.reset()
            self.toggle_camera_button.config(text="Stop Camera")
            self.update_status("Camera started")
        else:
            self.toggle_camera_button.config(text="Start Camera")
            self.update_status("Camera stopped")

    def show_frame(self, frame_rgb):
        h, w = frame_rgb.shape[:2]

        # Preserve aspect ratio
        if h > 0 and w > 0:
            ratio = min(DISPLAY_WIDTH / w, DISPLAY_HEIGHT / h)
            new_size = (int(w * ratio), int(h * ratio))

            img = Image.fromarray(frame_rgb)
            img = img.resize(new_size, Image.LANCZOS)
            imgtk = ImageTk.PhotoImage(image=img)

            self.label_webcam.imgtk = imgtk
            self.label_webcam.configure(image=imgtk)

    def update(self):
        """Update the video frame"""
        if self.controller.available and not self.controller.detection_paused:
            ret, frame = self.webcam.read()
            if ret:
                frame = cv2.flip(frame, 1)  # Mirror the image for a more intuitive view
                frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

                frame_rgb.flags.writeable = False
                results = self.face_mesh.process(frame_rgb)

                output = self.controller.on_result(results, frame_rgb)

                if self.show_mesh_var.get() and results.multi_face_landmarks:
                    output = output.copy()
                    mp_drawing.draw_landmarks(
                        image=output,
                        landmark_list=results.multi_face_landmarks[0],
                        connections=mp_face_mesh.FACEMESH_LIPS,
                        landmark_drawing_spec=None,
                        connection_drawing_spec=mp_drawing_styles.get_default_face_mesh_contours_style()
                    )

                self.show_frame(output)

                fps = self.fps_monitor.update()
                face_text = "no face" if self.controller.state == FrameState.NO_FACE else "face tracked"
                self.tracking_var.set(f"{face_text} | FPS: {fps:.0f}")

        # Schedule the next update
        self.window.after(FRAME_INTERVAL_MS, self.update)

    def on_closing(self):
        """Clean up resources when window is closed"""
        if self.webcam is not None and self.webcam.isOpened():
            self.webcam.release()
        if self.face_mesh is not None:
            self.face_mesh.close()
        self.window.destroy()

    def switch_camera(self, event=None):
        """Switch between available cameras"""
        if self.webcam is not None and self.webcam.isOpened():
            self.webcam.release()

        next_index = (self.camera_index + 1) % 4
        for index in (next_index, 0, self.camera_index):
            try:
                self.webcam = open_camera(index)
            except PipelineUnavailable:
                continue
            self.camera_index = index
            logger.info("Switched to camera %d", index)
            try:
                self.start_detector()
            except PipelineUnavailable as e:
                self.pipeline_unavailable(str(e))
                return
            self.controller.mark_available()
            self.update_status(f"Switched to camera {index}")
            return
        self.pipeline_unavailable("No camera could be opened")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Real-time AR lipstick try-on")
    parser.add_argument("--camera", type=int, default=0, help="Index of the webcam to open")
    parser.add_argument("--cut-out-mouth", action="store_true",
                        help="Leave the inner mouth uncolored")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        stream=sys.stdout,
        format="%(asctime)s %(levelname)-5s %(name)s: %(message)s",
    )

    root = tk.Tk()
    root.resizable(False, False)

    print("AR Lipstick Try-On started")
    print("Press 'k' key to switch between cameras")

    style = ttk.Style()
    if 'clam' in style.theme_names():
        style.theme_use('clam')

    LipstickTryOnApp(root, "AR Lipstick Try-On", camera_index=args.camera,
                     cut_out_mouth=args.cut_out_mouth)

    root.mainloop()


if __name__ == "__main__":
    main()
