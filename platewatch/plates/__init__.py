"""
Platewatch Plate Recognition

Normalization, plate-shape heuristic, watchlist matching and the region
heuristics used in plate mode.
"""

from platewatch.plates.normalize import normalize_text, looks_like_plate
from platewatch.plates.watchlist_store import Watchlist, WatchlistSnapshot
from platewatch.plates.matcher import PlateMatcher, MatchDecision
from platewatch.plates.regions import RegionProposer, BrightnessFilter, CropRegion, mean_luma
from platewatch.plates.base import RecognitionEngine, RegionDetector, orient_image

__all__ = [
    'normalize_text',
    'looks_like_plate',
    'Watchlist',
    'WatchlistSnapshot',
    'PlateMatcher',
    'MatchDecision',
    'RegionProposer',
    'BrightnessFilter',
    'CropRegion',
    'mean_luma',
    'RecognitionEngine',
    'RegionDetector',
    'orient_image',
]
