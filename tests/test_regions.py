"""
Tests for plate region proposals

Tests candidate filtering, padding, clamping and the brightness filter.
"""

import numpy as np
import pytest

from platewatch.plates.regions import BrightnessFilter, RegionProposer, mean_luma
from platewatch.schemas import BoundingBox, PlateDetail

from conftest import solid_frame


def box_with_aspect(ratio: float, y: float = 0.4) -> BoundingBox:
    """Normalized box with the given width/height ratio"""
    height = 0.1
    return BoundingBox(x=0.1, y=y, width=height * ratio, height=height)


class TestBoundingBox:
    """Test normalized box helpers"""

    def test_aspect_ratio_is_normalized(self):
        box = BoundingBox(x=0.0, y=0.0, width=0.5, height=0.1)
        assert box.aspect_ratio == pytest.approx(5.0)
        assert BoundingBox(x=0.0, y=0.0, width=0.5, height=0.0).aspect_ratio == 0.0

    def test_pixel_slice_flips_vertical_axis(self):
        """Bottom-left origin: a box at the bottom maps to the last rows"""
        box = BoundingBox(x=0.25, y=0.0, width=0.5, height=0.25)
        assert box.to_pixel_slice(400, 200) == (150, 200, 100, 300)

    def test_from_pixel_rect(self):
        box = BoundingBox.from_pixel_rect(100, 150, 200, 50, 400, 200)
        assert box == BoundingBox(x=0.25, y=0.0, width=0.5, height=0.25)


class TestCandidateFilter:
    """Test geometry filtering"""

    def test_aspect_three_depends_on_detail(self):
        proposer = RegionProposer()
        box = box_with_aspect(3.0)

        assert proposer.filter_candidates([box], PlateDetail.WIDE) == [box]
        assert proposer.filter_candidates([box], PlateDetail.PRECISE) == []

    def test_aspect_four_and_a_half_passes_both(self):
        proposer = RegionProposer()
        box = box_with_aspect(4.5)

        assert proposer.filter_candidates([box], PlateDetail.WIDE) == [box]
        assert proposer.filter_candidates([box], PlateDetail.PRECISE) == [box]

    def test_band_is_inclusive(self):
        proposer = RegionProposer()
        low = BoundingBox(x=0.0, y=0.25, width=0.3125, height=0.125)
        high = BoundingBox(x=0.0, y=0.25, width=0.9375, height=0.125)
        assert proposer.filter_candidates([low, high], PlateDetail.WIDE) == [low, high]

    def test_outside_wide_band(self):
        proposer = RegionProposer()
        boxes = [box_with_aspect(2.0), box_with_aspect(8.0)]
        assert proposer.filter_candidates(boxes, PlateDetail.WIDE) == []

    def test_non_square_frame_uses_normalized_aspect(self):
        """A 4.5 normalized box on a 1920 x 1080 frame is 8.0 in pixels but still kept"""
        proposer = RegionProposer()
        box = BoundingBox(x=0.1, y=0.4, width=0.45, height=0.1)
        frame = np.full((1080, 1920, 3), 204, dtype=np.uint8)

        assert proposer.filter_candidates([box], PlateDetail.WIDE) == [box]
        assert proposer.filter_candidates([box], PlateDetail.PRECISE) == [box]

        regions = proposer.propose(frame, [box], PlateDetail.PRECISE)
        assert [r.source_bbox for r in regions] == [box]

    def test_bottom_edge_limit(self):
        proposer = RegionProposer()
        low_box = box_with_aspect(4.5, y=0.5)
        edge_box = box_with_aspect(4.5, y=0.95)

        assert proposer.filter_candidates([low_box, edge_box], PlateDetail.WIDE) == [low_box]

    def test_candidate_cap_applies_before_filtering(self):
        """Only the first 12 detector boxes are considered"""
        proposer = RegionProposer()
        rejects = [box_with_aspect(1.0)] * 12
        good = box_with_aspect(4.5)

        assert proposer.filter_candidates(rejects + [good], PlateDetail.WIDE) == []
        assert proposer.candidates_seen == 12


class TestCropping:
    """Test padding, clamping and brightness"""

    def test_padding_grows_each_side(self):
        proposer = RegionProposer()
        frame = solid_frame(0.8, width=1000, height=1000)
        box = BoundingBox(x=0.4, y=0.4, width=0.2, height=0.1)

        region = proposer.crop(frame, box)

        assert region.source_bbox == box
        assert region.crop_bbox.x == pytest.approx(0.384)
        assert region.crop_bbox.width == pytest.approx(0.232)
        assert region.crop_bbox.y == pytest.approx(0.382)
        assert region.crop_bbox.height == pytest.approx(0.136)
        assert region.image.shape[:2] == (136, 232)

    def test_padding_clamped_to_frame(self):
        proposer = RegionProposer()
        frame = solid_frame(0.8, width=100, height=100)
        box = BoundingBox(x=0.0, y=0.0, width=0.5, height=0.1)

        region = proposer.crop(frame, box)

        assert region.crop_bbox.x == 0.0
        assert region.crop_bbox.y == 0.0
        assert region.crop_bbox.max_x == pytest.approx(0.54)
        assert region.crop_bbox.max_y == pytest.approx(0.118)

    def test_box_outside_frame_is_dropped(self):
        proposer = RegionProposer()
        frame = solid_frame(0.8)
        assert proposer.crop(frame, BoundingBox(x=1.5, y=0.2, width=0.3, height=0.1)) is None

    def test_bright_crop_accepted(self):
        proposer = RegionProposer()
        regions = proposer.propose(solid_frame(0.75), [BoundingBox(0.2, 0.3, 0.45, 0.1)], PlateDetail.WIDE)

        assert len(regions) == 1
        assert regions[0].accepted
        assert regions[0].luma == pytest.approx(0.75, abs=0.01)

    def test_dark_crop_rejected(self):
        proposer = RegionProposer()
        regions = proposer.propose(solid_frame(0.30), [BoundingBox(0.2, 0.3, 0.45, 0.1)], PlateDetail.WIDE)

        assert len(regions) == 1
        assert not regions[0].accepted
        assert proposer.get_stats()["crops_rejected"] == 1


class TestBrightness:
    """Test the luma heuristic"""

    def test_luma_weights(self):
        """Green dominates Rec. 709 luma"""
        green = np.zeros((4, 4, 3), dtype=np.uint8)
        green[..., 1] = 255
        blue = np.zeros((4, 4, 3), dtype=np.uint8)
        blue[..., 0] = 255

        assert mean_luma(green) == pytest.approx(0.7152)
        assert mean_luma(blue) == pytest.approx(0.0722)

    def test_grayscale_image(self):
        gray = np.full((4, 4), 153, dtype=np.uint8)
        assert mean_luma(gray) == pytest.approx(0.6)

    def test_threshold_is_strict(self):
        brightness = BrightnessFilter(0.60)
        assert brightness.accepts_luma(0.61)
        assert not brightness.accepts_luma(0.60)
        assert not brightness.accepts(np.zeros((0, 0, 3), dtype=np.uint8))
