"""
Text Recognition

OCR adapter used by the pipeline for full frames and plate crops.
"""

from typing import List

import cv2
import numpy as np

from platewatch.plates.base import RecognitionEngine, orient_image
from platewatch.schemas import BoundingBox, Orientation, TextHit


class TextRecognizer(RecognitionEngine):
    """
    Text recognition engine.

    Uses EasyOCR for text recognition. Falls back to pytesseract if available.
    """

    def __init__(self, languages: List[str] = None, min_confidence: float = 0.0):
        """
        Args:
            languages: EasyOCR language codes (default ["en"])
            min_confidence: Hits below this confidence are dropped
        """
        self.languages = languages or ["en"]
        self.min_confidence = min_confidence
        self.ocr_engine = None
        self.ocr_type = None

        # Try EasyOCR first
        try:
            import easyocr
            self.ocr_engine = easyocr.Reader(self.languages, gpu=False)
            self.ocr_type = "easyocr"
            print("[TextRecognizer] Using EasyOCR")
        except ImportError:
            pass

        # Fall back to pytesseract
        if self.ocr_engine is None:
            try:
                import pytesseract
                self.ocr_engine = pytesseract
                self.ocr_type = "tesseract"
                print("[TextRecognizer] Using Tesseract OCR")
            except ImportError:
                pass

        if self.ocr_engine is None:
            print("[TextRecognizer] WARNING: No OCR library available.")
            print("[TextRecognizer] Install with: pip install 'platewatch[ocr]'")
            self.ocr_type = "none"

    def recognize_text(self, image: np.ndarray, orientation: Orientation = Orientation.UP) -> List[TextHit]:
        if self.ocr_type == "none" or image is None or image.size == 0:
            return []

        upright = orient_image(image, orientation)

        if self.ocr_type == "easyocr":
            hits = self._read_easyocr(upright)
        else:
            hits = self._read_tesseract(upright)

        return [hit for hit in hits if hit.confidence >= self.min_confidence]

    def _read_easyocr(self, image: np.ndarray) -> List[TextHit]:
        """Read using EasyOCR"""
        frame_height, frame_width = image.shape[:2]
        hits = []

        for points, text, confidence in self.ocr_engine.readtext(image):
            xs = [p[0] for p in points]
            ys = [p[1] for p in points]
            x, y = min(xs), min(ys)
            bbox = BoundingBox.from_pixel_rect(
                x, y, max(xs) - x, max(ys) - y, frame_width, frame_height
            )
            hits.append(TextHit(text=text, confidence=float(confidence), bbox=bbox))

        return hits

    def _read_tesseract(self, image: np.ndarray) -> List[TextHit]:
        """Read using Tesseract (one hit per detected line)"""
        frame_height, frame_width = image.shape[:2]
        if image.ndim == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        data = self.ocr_engine.image_to_data(
            image,
            config="--oem 3 --psm 11",
            output_type=self.ocr_engine.Output.DICT,
        )

        # Group words by (block, paragraph, line)
        lines = {}
        for i, word in enumerate(data["text"]):
            word = (word or "").strip()
            conf = float(data["conf"][i])
            if not word or conf < 0:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(i)

        hits = []
        for indices in lines.values():
            text = " ".join(data["text"][i].strip() for i in indices)
            x0 = min(data["left"][i] for i in indices)
            y0 = min(data["top"][i] for i in indices)
            x1 = max(data["left"][i] + data["width"][i] for i in indices)
            y1 = max(data["top"][i] + data["height"][i] for i in indices)
            confidence = sum(float(data["conf"][i]) for i in indices) / len(indices) / 100.0
            bbox = BoundingBox.from_pixel_rect(x0, y0, x1 - x0, y1 - y0, frame_width, frame_height)
            hits.append(TextHit(text=text, confidence=confidence, bbox=bbox))

        return hits
