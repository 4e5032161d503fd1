"""
Frame rate monitoring for the try-on window
"""
import time
from collections import deque


class FpsMonitor:
    def __init__(self, window=30, clock=time.perf_counter):
        self.frame_times = deque(maxlen=window)
        self.clock = clock
        self.fps = 0.0

    def update(self):
        """Call once per rendered frame. Returns the current FPS."""
        self.frame_times.append(self.clock())

        if len(self.frame_times) < 2:
            self.fps = 0.0
            return self.fps

        # FPS over the frames kept in the window
        elapsed = self.frame_times[-1] - self.frame_times[0]
        self.fps = (len(self.frame_times) - 1) / elapsed if elapsed > 0 else 0.0
        return self.fps

    def reset(self):
        self.frame_times.clear()
        self.fps = 0.0
