"""
Frame Throttle

Admission control for incoming frames. Frames arriving faster than the
interval are dropped, never queued.
"""

import time
from typing import Optional

from platewatch.settings import ScannerSettings


MIN_FRAME_INTERVAL = 0.05


class FrameThrottle:
    """
    Admits a frame when at least `interval` seconds passed since the last
    admitted one.

    Runs on the frame-delivery path, so it only compares timestamps.
    """

    def __init__(
        self,
        settings: Optional[ScannerSettings] = None,
        interval: Optional[float] = None,
        min_interval: float = MIN_FRAME_INTERVAL
    ):
        """
        Args:
            settings: Live settings; detection_interval is read on every frame
            interval: Fixed interval used when no settings are given
            min_interval: Floor applied to any configured interval
        """
        self.settings = settings
        self.fixed_interval = interval if interval is not None else 0.15
        self.min_interval = min_interval
        self.last_processed = float("-inf")
        self.frames_admitted = 0
        self.frames_dropped = 0

    @property
    def interval(self) -> float:
        """Effective interval between admitted frames"""
        configured = self.settings.detection_interval if self.settings else self.fixed_interval
        return max(self.min_interval, configured)

    def should_process(self, now: Optional[float] = None) -> bool:
        """
        Check (and record) admission of a frame.

        Args:
            now: Monotonic time in seconds (default: time.monotonic())

        Returns:
            True if the frame should be processed
        """
        if now is None:
            now = time.monotonic()

        if now - self.last_processed >= self.interval:
            self.last_processed = now
            self.frames_admitted += 1
            return True

        self.frames_dropped += 1
        return False

    def reset(self):
        self.last_processed = float("-inf")

    def get_stats(self) -> dict:
        """Get admission statistics"""
        total = self.frames_admitted + self.frames_dropped
        return {
            "frames_admitted": self.frames_admitted,
            "frames_dropped": self.frames_dropped,
            "admit_rate": self.frames_admitted / total if total else 0.0,
            "interval": self.interval,
        }
