"""
Frame Source

Pulls frames for the live pipeline from a camera index, an RTSP URL or a
local file. Streams are reopened after read failures; files simply end.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

import cv2
import numpy as np

from platewatch.schemas import Orientation


@dataclass(frozen=True)
class SourceInfo:
    """Capture properties reported by OpenCV once the source is open"""
    width: int
    height: int
    fps: float


class VideoSource:
    """
    Yields (frame, orientation) pairs at capture cadence.

    Only reads from the capture; device settings are left as they are.
    """

    def __init__(
        self,
        source: Union[str, int],
        orientation: Orientation = Orientation.UP,
        reconnect_delay: float = 5.0,
        buffer_size: int = 1,
        realtime: bool = False
    ):
        """
        Args:
            source: Camera index ("0" works too), RTSP URL or file path
            orientation: Orientation tag attached to every frame
            reconnect_delay: Minimum seconds between reconnect attempts
            buffer_size: Capture buffer for live sources (1 = newest frame)
            realtime: Sleep between file frames to match the file's fps
        """
        if isinstance(source, str) and source.isdigit():
            source = int(source)

        self.source = source
        self.orientation = Orientation(orientation)
        self.reconnect_delay = reconnect_delay
        self.buffer_size = buffer_size
        self.realtime = realtime

        self.is_file = isinstance(source, str) and Path(source).is_file()
        self.cap: Optional[cv2.VideoCapture] = None
        self.info: Optional[SourceInfo] = None

        self.frames_read = 0
        self.reconnects = 0
        self._last_attempt = float("-inf")

    def _connect(self) -> bool:
        capture = cv2.VideoCapture(self.source)
        if not self.is_file:
            capture.set(cv2.CAP_PROP_BUFFERSIZE, self.buffer_size)

        if not capture.isOpened():
            capture.release()
            print(f"[VideoSource] Cannot open {self.source}")
            return False

        self.cap = capture
        self.info = SourceInfo(
            width=int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            height=int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            fps=capture.get(cv2.CAP_PROP_FPS) or 25.0,
        )
        print(f"[VideoSource] {self.source}: {self.info.width}x{self.info.height} @ {self.info.fps:.1f} fps")
        return True

    def _disconnect(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    def _grab(self) -> Optional[np.ndarray]:
        if self.cap is None:
            return None
        ok, frame = self.cap.read()
        if not ok:
            return None
        self.frames_read += 1
        return frame

    def _recover(self) -> bool:
        """Reopen a live source, at most once per reconnect_delay"""
        now = time.monotonic()
        if now - self._last_attempt < self.reconnect_delay:
            return False
        self._last_attempt = now
        self.reconnects += 1

        print(f"[VideoSource] Reconnecting to {self.source}")
        self._disconnect()
        return self._connect()

    def frames(self, max_failures: int = 10) -> Iterator[Tuple[np.ndarray, Orientation]]:
        """
        Iterate over frames until the file ends or the stream gives up.

        Args:
            max_failures: Consecutive failed reads tolerated on a live source

        Raises:
            RuntimeError: If the source cannot be opened at all
        """
        if not self._connect():
            raise RuntimeError(f"Failed to open video source: {self.source}")

        pacing = 1.0 / self.info.fps if self.realtime and self.is_file else 0.0
        failures = 0

        try:
            while True:
                frame = self._grab()
                if frame is not None:
                    failures = 0
                    yield frame, self.orientation
                    if pacing:
                        time.sleep(pacing)
                    continue

                if self.is_file:
                    print(f"[VideoSource] End of file after {self.frames_read} frames")
                    return

                failures += 1
                if failures >= max_failures:
                    print(f"[VideoSource] Giving up after {failures} failed reads")
                    return

                if self._recover():
                    failures = 0
                else:
                    time.sleep(1)
        finally:
            self._disconnect()
