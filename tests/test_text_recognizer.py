"""
Tests for the OCR adapter box conversion

The OCR libraries are replaced by fakes; only the adapter logic is exercised.
"""

import numpy as np
import pytest

from platewatch.plates.plate_ocr import TextRecognizer
from platewatch.schemas import BoundingBox


def recognizer(ocr_type, engine, min_confidence=0.0):
    """TextRecognizer wired to a fake engine without loading any model"""
    instance = TextRecognizer.__new__(TextRecognizer)
    instance.languages = ["en"]
    instance.min_confidence = min_confidence
    instance.ocr_engine = engine
    instance.ocr_type = ocr_type
    return instance


class FakeEasyOCR:
    def __init__(self, results):
        self.results = results

    def readtext(self, image):
        return self.results


class FakeTesseract:
    class Output:
        DICT = "dict"

    def __init__(self, data):
        self.data = data

    def image_to_data(self, image, config=None, output_type=None):
        return self.data


class TestTextRecognizer:
    """Test conversion of engine output to text hits"""

    def test_easyocr_boxes(self):
        points = [[100, 50], [300, 50], [300, 100], [100, 100]]
        engine = FakeEasyOCR([(points, "KR 1234A", 0.87)])

        hits = recognizer("easyocr", engine).recognize_text(np.zeros((200, 400, 3), dtype=np.uint8))

        assert len(hits) == 1
        assert hits[0].text == "KR 1234A"
        assert hits[0].confidence == pytest.approx(0.87)
        assert hits[0].bbox == BoundingBox(x=0.25, y=0.5, width=0.5, height=0.25)

    def test_min_confidence(self):
        points = [[0, 0], [10, 0], [10, 10], [0, 10]]
        engine = FakeEasyOCR([(points, "AB1234", 0.2), (points, "PO5511", 0.9)])

        hits = recognizer("easyocr", engine, min_confidence=0.5).recognize_text(
            np.zeros((20, 20, 3), dtype=np.uint8)
        )

        assert [h.text for h in hits] == ["PO5511"]

    def test_tesseract_groups_words_by_line(self):
        data = {
            "text": ["KR", "1234A", "", "noise"],
            "conf": ["90", "80", "-1", "40"],
            "block_num": [1, 1, 1, 2],
            "par_num": [1, 1, 1, 1],
            "line_num": [1, 1, 1, 1],
            "left": [100, 160, 0, 10],
            "top": [50, 50, 0, 150],
            "width": [50, 140, 0, 40],
            "height": [50, 50, 0, 20],
        }

        hits = recognizer("tesseract", FakeTesseract(data)).recognize_text(
            np.zeros((200, 400, 3), dtype=np.uint8)
        )

        assert [h.text for h in hits] == ["KR 1234A", "noise"]
        assert hits[0].confidence == pytest.approx(0.85)
        assert hits[0].bbox == BoundingBox(x=0.25, y=0.5, width=0.5, height=0.25)

    def test_no_engine(self):
        hits = recognizer("none", None).recognize_text(np.zeros((20, 20, 3), dtype=np.uint8))
        assert hits == []
