"""
Shared fakes for the platewatch tests.

The recognition engine, rectangle detector, HTTP session and notification
sinks are replaced by in-memory doubles.
"""

import threading
from typing import Callable, List, Optional, Sequence

import numpy as np
import pytest
import requests

from platewatch.alerts.sinks import AudioSink, HapticSink, NotificationSinks, SpeechSink, VisualSignal
from platewatch.plates.base import RecognitionEngine, RegionDetector
from platewatch.schemas import BoundingBox, Orientation, TextHit


FULL_FRAME = BoundingBox(x=0.0, y=0.0, width=1.0, height=1.0)


def make_hits(*texts: str) -> List[TextHit]:
    """Text hits spread over the frame"""
    return [
        TextHit(text=text, confidence=0.9, bbox=BoundingBox(x=0.1, y=0.1 * i, width=0.3, height=0.05))
        for i, text in enumerate(texts)
    ]


def solid_frame(luma: float, width: int = 400, height: int = 200) -> np.ndarray:
    """Uniform gray BGR frame with the given luma (0..1)"""
    value = int(round(luma * 255))
    return np.full((height, width, 3), value, dtype=np.uint8)


class FakeEngine(RecognitionEngine):
    """Returns canned hits and records every call"""

    def __init__(self, hits: Sequence[TextHit] = (), error: Optional[Exception] = None):
        self.hits = list(hits)
        self.error = error
        self.calls = []
        self._lock = threading.Lock()

    def recognize_text(self, image, orientation=Orientation.UP):
        with self._lock:
            self.calls.append((image.shape, orientation))
        if self.error is not None:
            raise self.error
        return list(self.hits)


class FakeDetector(RegionDetector):
    """Returns canned rectangles"""

    def __init__(self, boxes: Sequence[BoundingBox] = (), error: Optional[Exception] = None):
        self.boxes = list(boxes)
        self.error = error
        self.calls = 0

    def detect_rectangles(self, image, orientation=Orientation.UP):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.boxes)


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Stands in for requests.Session"""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, timeout=None):
        self.requests.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


class RecordingSinks:
    """Notification sinks that append to a shared event log"""

    def __init__(self, fail: Sequence[str] = ()):
        self.events: List[str] = []
        events = self.events
        failing = set(fail)

        class Haptic(HapticSink):
            def pulse(self):
                if "haptic" in failing:
                    raise RuntimeError("no haptic hardware")
                events.append("haptic")

        class Audio(AudioSink):
            def play(self, sound_id):
                if "audio" in failing:
                    raise RuntimeError("audio device busy")
                events.append(f"audio:{sound_id}")

        class Speech(SpeechSink):
            def speak(self, text, language, rate):
                events.append(f"speak:{language}:{text}")

            def stop(self):
                events.append("speech-stop")

        class Visual(VisualSignal):
            def set_active(self, active):
                events.append(f"visual:{active}")

        self.sinks = NotificationSinks(haptic=Haptic(), audio=Audio(), speech=Speech(), visual=Visual())


class ManualScheduler:
    """Collects delayed callbacks; run_all() fires them"""

    def __init__(self):
        self.scheduled = []

    def __call__(self, delay: float, callback: Callable[[], None]):
        self.scheduled.append((delay, callback))

    def run_all(self):
        pending, self.scheduled = self.scheduled, []
        for _, callback in pending:
            callback()


@pytest.fixture
def recording_sinks():
    return RecordingSinks()


@pytest.fixture
def scheduler():
    return ManualScheduler()
