"""
Platewatch Configuration

Timing constants, capacities and alert parameters.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ScannerConfig:
    """Static configuration for the scanner core"""

    # Watchlist source
    watchlist_url: Optional[str] = None
    watchlist_timeout: float = 10.0

    # Alerting
    alert_debounce_seconds: float = 1.2
    overlay_seconds: float = 1.0
    voice_delay_seconds: float = 1.0
    voice_language: str = "pl-PL"
    warning_phrase: str = "Uwaga, nieoznakowany radiowóz."
    warning_rate: float = 0.46
    plate_rate: float = 0.5
    alert_sound_id: int = 1005

    # Buffers
    debug_crop_capacity: int = 20
    recognized_capacity: int = 1000  # 0 = unbounded

    # Plate mode heuristics
    max_candidates: int = 12
    brightness_threshold: float = 0.60
    pad_x_fraction: float = 0.08
    pad_y_fraction: float = 0.18
    max_bottom_edge: float = 0.95

    # Frame admission
    min_frame_interval: float = 0.05

    # Static media analysis
    video_sample_step: float = 0.15

    # Thread pool used for recognition / rectangle detection
    recognition_workers: int = 4

    def __post_init__(self):
        if self.debug_crop_capacity < 1:
            raise ValueError(f"debug_crop_capacity must be >= 1, got {self.debug_crop_capacity}")
        if self.recognized_capacity < 0:
            raise ValueError(f"recognized_capacity must be >= 0, got {self.recognized_capacity}")
        if not 0.0 <= self.brightness_threshold <= 1.0:
            raise ValueError(f"brightness_threshold must be 0.0-1.0, got {self.brightness_threshold}")

    @classmethod
    def from_env(cls) -> "ScannerConfig":
        """Create config from environment variables"""
        return cls(
            watchlist_url=os.getenv("PLATEWATCH_WATCHLIST_URL"),
            watchlist_timeout=float(os.getenv("PLATEWATCH_WATCHLIST_TIMEOUT", "10.0")),
            alert_debounce_seconds=float(os.getenv("PLATEWATCH_ALERT_DEBOUNCE", "1.2")),
            overlay_seconds=float(os.getenv("PLATEWATCH_OVERLAY_SECONDS", "1.0")),
            voice_delay_seconds=float(os.getenv("PLATEWATCH_VOICE_DELAY", "1.0")),
            voice_language=os.getenv("PLATEWATCH_VOICE_LANGUAGE", "pl-PL"),
            warning_phrase=os.getenv("PLATEWATCH_WARNING_PHRASE", "Uwaga, nieoznakowany radiowóz."),
            warning_rate=float(os.getenv("PLATEWATCH_WARNING_RATE", "0.46")),
            plate_rate=float(os.getenv("PLATEWATCH_PLATE_RATE", "0.5")),
            alert_sound_id=int(os.getenv("PLATEWATCH_ALERT_SOUND_ID", "1005")),
            debug_crop_capacity=int(os.getenv("PLATEWATCH_DEBUG_CROPS", "20")),
            recognized_capacity=int(os.getenv("PLATEWATCH_RECOGNIZED_CAPACITY", "1000")),
            max_candidates=int(os.getenv("PLATEWATCH_MAX_CANDIDATES", "12")),
            brightness_threshold=float(os.getenv("PLATEWATCH_BRIGHTNESS_THRESHOLD", "0.60")),
            pad_x_fraction=float(os.getenv("PLATEWATCH_PAD_X", "0.08")),
            pad_y_fraction=float(os.getenv("PLATEWATCH_PAD_Y", "0.18")),
            max_bottom_edge=float(os.getenv("PLATEWATCH_MAX_BOTTOM_EDGE", "0.95")),
            min_frame_interval=float(os.getenv("PLATEWATCH_MIN_FRAME_INTERVAL", "0.05")),
            video_sample_step=float(os.getenv("PLATEWATCH_VIDEO_STEP", "0.15")),
            recognition_workers=int(os.getenv("PLATEWATCH_RECOGNITION_WORKERS", "4")),
        )


# Global default config
DEFAULT_CONFIG = ScannerConfig.from_env()
