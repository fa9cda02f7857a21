"""
Static Media Analysis

Full-frame recognition of still images and sampled video files. Results are
returned to the caller and never reach the live store or the alert path.
"""

from pathlib import Path
from typing import Callable, List, Optional, Union

import cv2
import numpy as np

from platewatch.plates.base import RecognitionEngine
from platewatch.plates.normalize import normalize_text
from platewatch.schemas import Orientation, RecognizedItem


def load_image(path: Union[str, Path]) -> Optional[np.ndarray]:
    """Read an image file (BGR), or None if it cannot be decoded"""
    image = cv2.imread(str(path))
    if image is None:
        print(f"[Analysis] Could not read image: {path}")
    return image


def analyze_image(image: np.ndarray, engine: RecognitionEngine) -> List[RecognizedItem]:
    """
    Recognize every text fragment in a still image.

    Args:
        image: Upright BGR image
        engine: Recognition engine

    Returns:
        Items newest-first (reverse engine order), is_match always False
    """
    if image is None or image.size == 0:
        return []

    try:
        hits = engine.recognize_text(image, Orientation.UP)
    except Exception as e:
        print(f"[Analysis] Recognition error: {e}")
        return []

    results = []
    for hit in hits or []:
        text = normalize_text(hit.text)
        if not text:
            continue
        results.insert(0, RecognizedItem.create(text, hit.bbox, is_match=False))

    return results


def analyze_video(
    path: Union[str, Path],
    engine: RecognitionEngine,
    step: float = 0.15,
    should_stop: Optional[Callable[[], bool]] = None
) -> List[RecognizedItem]:
    """
    Sample a video file every `step` seconds and recognize each sample.

    Args:
        path: Video file
        engine: Recognition engine
        step: Sampling step in seconds
        should_stop: Polled before each sample; True stops early

    Returns:
        Items from all samples, newest-first
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")

    cap = cv2.VideoCapture(str(path))
    if not cap.isOpened():
        print(f"[Analysis] Could not open video: {path}")
        return []

    results: List[RecognizedItem] = []

    try:
        fps = cap.get(cv2.CAP_PROP_FPS) or 25.0
        frame_count = cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0
        duration = frame_count / fps
        samples = int(duration / step) + 1

        print(f"[Analysis] {path}: {duration:.2f}s, {samples} samples")

        for i in range(samples):
            if should_stop is not None and should_stop():
                print("[Analysis] Stopped early")
                break

            cap.set(cv2.CAP_PROP_POS_MSEC, i * step * 1000.0)
            ret, frame = cap.read()
            if not ret:
                continue

            results[:0] = analyze_image(frame, engine)

    finally:
        cap.release()

    return results
