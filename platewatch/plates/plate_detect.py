"""
Rectangle Detection

Finds rectangular regions in a frame using OpenCV contour heuristics.
"""

from typing import List

import cv2
import numpy as np

from platewatch.plates.base import RegionDetector, orient_image
from platewatch.schemas import BoundingBox, Orientation


class RectangleDetector(RegionDetector):
    """
    Detects rectangles using edge detection + contour analysis.

    Boxes are returned largest first, capped at max_observations.
    """

    def __init__(
        self,
        max_observations: int = 12,
        min_size: float = 0.03,
        min_aspect_ratio: float = 0.2
    ):
        """
        Args:
            max_observations: Maximum number of rectangles to return
            min_size: Minimum side length relative to the shorter frame side
            min_aspect_ratio: Minimum short-side / long-side ratio
        """
        self.max_observations = max_observations
        self.min_size = min_size
        self.min_aspect_ratio = min_aspect_ratio

    def detect_rectangles(self, image: np.ndarray, orientation: Orientation = Orientation.UP) -> List[BoundingBox]:
        if image is None or image.size == 0:
            return []

        frame = orient_image(image, orientation)
        frame_height, frame_width = frame.shape[:2]
        min_side = self.min_size * min(frame_width, frame_height)

        if frame.ndim == 3:
            gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        else:
            gray = frame

        # Bilateral filter keeps edges sharp while removing noise
        gray = cv2.bilateralFilter(gray, 11, 17, 17)
        edges = cv2.Canny(gray, 30, 200)

        contours, _ = cv2.findContours(edges, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)
        contours = sorted(contours, key=cv2.contourArea, reverse=True)[:30]

        boxes = []
        seen = set()

        for contour in contours:
            peri = cv2.arcLength(contour, True)
            approx = cv2.approxPolyDP(contour, 0.02 * peri, True)
            if len(approx) < 4:
                continue

            x, y, w, h = cv2.boundingRect(contour)
            if w < min_side or h < min_side:
                continue

            if min(w, h) / float(max(w, h)) < self.min_aspect_ratio:
                continue

            # Inner and outer edges of one border yield near-identical rects
            key = (x // 4, y // 4, w // 4, h // 4)
            if key in seen:
                continue
            seen.add(key)

            boxes.append(BoundingBox.from_pixel_rect(x, y, w, h, frame_width, frame_height))

            if len(boxes) >= self.max_observations:
                break

        return boxes
