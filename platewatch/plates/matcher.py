"""
Plate Matcher

Combines normalization, the plate-shape heuristic and the watchlist.
"""

from dataclasses import dataclass

from platewatch.plates.normalize import looks_like_plate, normalize_text
from platewatch.plates.watchlist_store import Watchlist


@dataclass(frozen=True)
class MatchDecision:
    """Outcome of evaluating one recognized string"""
    text: str  # normalized
    plate_shaped: bool
    is_match: bool


class PlateMatcher:
    """Decides whether recognized text is a watchlist hit"""

    def __init__(self, watchlist: Watchlist):
        self.watchlist = watchlist

    def evaluate(self, raw_text: str, require_plate_shape: bool = True) -> MatchDecision:
        """
        Evaluate raw recognized text.

        The text is always normalized. With require_plate_shape a match also
        needs the normalized text to look like a plate; without it, watchlist
        membership alone decides.

        Args:
            raw_text: Text as returned by the recognition engine
            require_plate_shape: Gate matches on the plate-shape heuristic

        Returns:
            MatchDecision
        """
        text = normalize_text(raw_text)
        if not text:
            return MatchDecision(text="", plate_shaped=False, is_match=False)

        plate_shaped = looks_like_plate(text)
        is_match = self.watchlist.contains(text)
        if require_plate_shape:
            is_match = is_match and plate_shaped

        return MatchDecision(text=text, plate_shaped=plate_shaped, is_match=is_match)
