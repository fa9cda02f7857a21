"""
Platewatch Schema Definitions

Core data structures shared by the recognition pipeline, the detection store
and the HTTP surface.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np


class Orientation(str, Enum):
    """How the capture device reports the frame relative to upright"""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class OCRMode(str, Enum):
    """Per-frame processing strategy"""
    SIMPLE = "simple"  # whole frame, every hit recorded
    PLATES = "plates"  # rectangle candidates, plate-shaped hits only


class PlateDetail(str, Enum):
    """Aspect-ratio band applied to rectangle candidates"""
    WIDE = "wide"
    PRECISE = "precise"

    @property
    def aspect_band(self) -> Tuple[float, float]:
        if self is PlateDetail.PRECISE:
            return (4.2, 4.8)
        return (2.5, 7.5)


@dataclass(frozen=True)
class BoundingBox:
    """
    Normalized rectangle (0..1) with the origin at the bottom-left corner.

    `y` is therefore the bottom edge and `y + height` the top edge.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def aspect_ratio(self) -> float:
        """Width / height in normalized units"""
        if self.height <= 0:
            return 0.0
        return self.width / self.height

    def padded(self, x_fraction: float, y_fraction: float) -> "BoundingBox":
        """Grow each side by a fraction of the box's own width/height"""
        dx = self.width * x_fraction
        dy = self.height * y_fraction
        return BoundingBox(
            x=self.x - dx,
            y=self.y - dy,
            width=self.width + 2 * dx,
            height=self.height + 2 * dy,
        )

    def clamped(self) -> "BoundingBox":
        """Clip to the unit square (may produce an empty box)"""
        x0 = min(1.0, max(0.0, self.x))
        y0 = min(1.0, max(0.0, self.y))
        x1 = min(1.0, max(0.0, self.max_x))
        y1 = min(1.0, max(0.0, self.max_y))
        return BoundingBox(x=x0, y=y0, width=x1 - x0, height=y1 - y0)

    def to_pixel_slice(self, frame_width: int, frame_height: int) -> Tuple[int, int, int, int]:
        """
        Convert to array indices (row_start, row_end, col_start, col_end).

        Rows count from the top of the image, so the vertical axis flips.
        """
        col_start = int(round(self.x * frame_width))
        col_end = int(round(self.max_x * frame_width))
        row_start = int(round((1.0 - self.max_y) * frame_height))
        row_end = int(round((1.0 - self.y) * frame_height))
        return row_start, row_end, col_start, col_end

    @classmethod
    def from_pixel_rect(
        cls,
        x: float,
        y: float,
        w: float,
        h: float,
        frame_width: int,
        frame_height: int
    ) -> "BoundingBox":
        """Build from a top-left-origin pixel rect (OpenCV convention)"""
        return cls(
            x=x / frame_width,
            y=1.0 - (y + h) / frame_height,
            width=w / frame_width,
            height=h / frame_height,
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class TextHit:
    """One text observation returned by a recognition engine"""
    text: str
    confidence: float
    bbox: BoundingBox


@dataclass(frozen=True)
class RecognizedItem:
    """A normalized text recognized in a frame"""
    text: str
    bbox: BoundingBox
    is_match: bool
    timestamp: float
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        if not self.text:
            raise ValueError("RecognizedItem text must not be empty")

    @classmethod
    def create(cls, text: str, bbox: BoundingBox, is_match: bool) -> "RecognizedItem":
        return cls(text=text, bbox=bbox, is_match=is_match, timestamp=time.time())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "bbox": self.bbox.to_dict(),
            "is_match": self.is_match,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, eq=False)
class DebugCrop:
    """A crop examined in plate mode, kept for inspection"""
    image: np.ndarray
    timestamp: float
    recognized_text: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def create(cls, image: np.ndarray, recognized_text: Optional[str] = None) -> "DebugCrop":
        # Own a private, read-only copy of the pixels
        pixels = np.array(image, copy=True)
        pixels.setflags(write=False)
        return cls(image=pixels, timestamp=time.time(), recognized_text=recognized_text)

    def to_dict(self) -> Dict[str, Any]:
        height, width = self.image.shape[:2]
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "recognized_text": self.recognized_text,
            "width": width,
            "height": height,
        }
