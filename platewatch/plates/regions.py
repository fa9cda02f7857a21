"""
Plate Region Proposals

Turns raw rectangle candidates into padded crops and screens them with a
bright-background heuristic before any text recognition runs.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from platewatch.schemas import BoundingBox, PlateDetail


# Rec. 709 luma weights
LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722


@dataclass
class CropRegion:
    """A padded candidate crop"""
    source_bbox: BoundingBox  # detector box before padding
    crop_bbox: BoundingBox  # padded and clamped
    image: np.ndarray  # BGR pixels of crop_bbox
    luma: float
    accepted: bool  # passed the brightness filter


def mean_luma(image: np.ndarray) -> float:
    """
    Average luma of a BGR image on a 0..1 scale.

    Grayscale images are treated as R = G = B.
    """
    if image is None or image.size == 0:
        return 0.0

    pixels = image.astype(np.float64)
    if pixels.ndim == 2:
        return float(pixels.mean() / 255.0)

    b = pixels[..., 0].mean()
    g = pixels[..., 1].mean()
    r = pixels[..., 2].mean()
    return float((LUMA_R * r + LUMA_G * g + LUMA_B * b) / 255.0)


class BrightnessFilter:
    """Accepts crops whose average luma is above a threshold"""

    def __init__(self, threshold: float = 0.60):
        self.threshold = threshold

    def accepts(self, image: np.ndarray) -> bool:
        return self.accepts_luma(mean_luma(image))

    def accepts_luma(self, luma: float) -> bool:
        return luma > self.threshold


class RegionProposer:
    """
    Filters and pads rectangle candidates for plate mode.

    Order of operations:
    1. keep the first max_candidates boxes
    2. keep boxes whose normalized aspect ratio is inside the plate band and
       whose bottom edge sits below max_bottom_edge
    3. pad each side (8% of width, 18% of height), clamp to the frame
    4. crop and run the brightness filter
    """

    def __init__(
        self,
        max_candidates: int = 12,
        pad_x_fraction: float = 0.08,
        pad_y_fraction: float = 0.18,
        max_bottom_edge: float = 0.95,
        brightness_filter: Optional[BrightnessFilter] = None
    ):
        self.max_candidates = max_candidates
        self.pad_x_fraction = pad_x_fraction
        self.pad_y_fraction = pad_y_fraction
        self.max_bottom_edge = max_bottom_edge
        self.brightness_filter = brightness_filter or BrightnessFilter()

        self.candidates_seen = 0
        self.candidates_filtered = 0
        self.crops_rejected = 0

    def filter_candidates(
        self,
        boxes: Sequence[BoundingBox],
        detail: PlateDetail
    ) -> List[BoundingBox]:
        """
        Apply the candidate cap and the geometry filters.

        Args:
            boxes: Detector output in detector order
            detail: Aspect-ratio band, applied to normalized width / height

        Returns:
            Surviving boxes, order preserved
        """
        low, high = PlateDetail(detail).aspect_band
        kept = []

        for box in list(boxes)[:self.max_candidates]:
            self.candidates_seen += 1
            ratio = box.aspect_ratio
            if low <= ratio <= high and box.y < self.max_bottom_edge:
                kept.append(box)
            else:
                self.candidates_filtered += 1

        return kept

    def crop(self, frame: np.ndarray, box: BoundingBox) -> Optional[CropRegion]:
        """
        Pad, clamp and crop one box.

        Returns:
            CropRegion, or None when the clamped box has no pixels
        """
        frame_height, frame_width = frame.shape[:2]
        crop_bbox = box.padded(self.pad_x_fraction, self.pad_y_fraction).clamped()
        if crop_bbox.is_empty:
            return None

        row_start, row_end, col_start, col_end = crop_bbox.to_pixel_slice(frame_width, frame_height)
        if row_end <= row_start or col_end <= col_start:
            return None

        image = frame[row_start:row_end, col_start:col_end]
        luma = mean_luma(image)
        accepted = self.brightness_filter.accepts_luma(luma)
        if not accepted:
            self.crops_rejected += 1

        return CropRegion(
            source_bbox=box,
            crop_bbox=crop_bbox,
            image=image,
            luma=luma,
            accepted=accepted,
        )

    def propose(
        self,
        frame: np.ndarray,
        boxes: Sequence[BoundingBox],
        detail: PlateDetail = PlateDetail.WIDE
    ) -> List[CropRegion]:
        """
        Produce crops for a frame.

        Rejected (too dark) crops are returned with accepted=False so the
        caller can still record them; degenerate boxes are dropped.

        Args:
            frame: Upright BGR frame
            boxes: Detector output for the frame
            detail: Aspect-ratio band

        Returns:
            Crop regions in detector order
        """
        if frame is None or frame.size == 0:
            return []

        regions = []

        for box in self.filter_candidates(boxes, detail):
            region = self.crop(frame, box)
            if region is not None:
                regions.append(region)

        return regions

    def get_stats(self) -> dict:
        return {
            "candidates_seen": self.candidates_seen,
            "candidates_filtered": self.candidates_filtered,
            "crops_rejected": self.crops_rejected,
        }
