"""
Recognition Engine Interfaces

Abstract capabilities the pipeline calls: text recognition and rectangle
detection. Both are blocking and run on worker threads.
"""

from abc import ABC, abstractmethod
from typing import List

import cv2
import numpy as np

from platewatch.schemas import BoundingBox, Orientation, TextHit


class RecognitionEngine(ABC):
    """Recognizes text in an image"""

    @abstractmethod
    def recognize_text(self, image: np.ndarray, orientation: Orientation = Orientation.UP) -> List[TextHit]:
        """
        Recognize text.

        Args:
            image: BGR image
            orientation: How the image is rotated relative to upright

        Returns:
            Text hits in engine order, boxes normalized with a bottom-left origin
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class RegionDetector(ABC):
    """Proposes rectangular regions that may contain a plate"""

    @abstractmethod
    def detect_rectangles(self, image: np.ndarray, orientation: Orientation = Orientation.UP) -> List[BoundingBox]:
        """
        Detect rectangles.

        Args:
            image: BGR image
            orientation: How the image is rotated relative to upright

        Returns:
            Boxes in detector order, normalized with a bottom-left origin
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


_ROTATIONS = {
    Orientation.DOWN: cv2.ROTATE_180,
    Orientation.LEFT: cv2.ROTATE_90_COUNTERCLOCKWISE,
    Orientation.RIGHT: cv2.ROTATE_90_CLOCKWISE,
}


def orient_image(image: np.ndarray, orientation: Orientation) -> np.ndarray:
    """Rotate an image so that it is upright"""
    rotation = _ROTATIONS.get(Orientation(orientation))
    if rotation is None:
        return image
    return cv2.rotate(image, rotation)
