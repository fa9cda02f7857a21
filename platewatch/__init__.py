"""
Platewatch - Plate Watchlist Scanner

Scans a video frame stream for plate-like text, matches it against a
watchlist and raises debounced alerts on a match.
"""

from platewatch.schemas import (
    BoundingBox,
    TextHit,
    RecognizedItem,
    DebugCrop,
    Orientation,
    OCRMode,
    PlateDetail,
)
from platewatch.config import ScannerConfig, DEFAULT_CONFIG
from platewatch.settings import ScannerSettings
from platewatch.detection_store import DetectionStore

__version__ = "1.0.0"

__all__ = [
    "BoundingBox",
    "TextHit",
    "RecognizedItem",
    "DebugCrop",
    "Orientation",
    "OCRMode",
    "PlateDetail",
    "ScannerConfig",
    "DEFAULT_CONFIG",
    "ScannerSettings",
    "DetectionStore",
]
