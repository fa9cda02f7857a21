"""
Platewatch Settings Manager

Live scanner toggles, optionally seeded from a JSON file. Changes are
published to explicit subscribers.
"""

import json
import threading
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from platewatch.schemas import OCRMode, PlateDetail


SettingsListener = Callable[[FrozenSet[str], "ScannerSettings"], None]

MIN_DETECTION_INTERVAL = 0.05
MAX_DETECTION_INTERVAL = 1.0


class ScannerSettings:
    """Runtime settings for the scanner (mode, interval, alert channels)"""

    FIELDS = (
        "ocr_mode",
        "plate_detail",
        "detection_interval",
        "play_sound",
        "play_haptic",
        "voice_enabled",
        "debug_mode",  # box overlay in HTTP clients only
    )

    def __init__(self, settings_file: Optional[str] = None, **overrides: Any):
        self.settings_file = Path(settings_file) if settings_file else None
        self._listeners: List[SettingsListener] = []
        self._lock = threading.Lock()

        self._values: Dict[str, Any] = self._get_defaults()
        self._values.update(self._coerce(self._load_settings()))
        self._values.update(self._coerce(overrides))

    def _load_settings(self) -> Dict[str, Any]:
        """Load settings from JSON file"""
        if self.settings_file is None or not self.settings_file.exists():
            return {}

        try:
            with open(self.settings_file, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"[Settings] Warning: Failed to load settings from {self.settings_file}: {e}")
            return {}

        scanner = data.get("scanner", data)
        return {k: v for k, v in scanner.items() if k in self.FIELDS}

    def _get_defaults(self) -> Dict[str, Any]:
        """Get default settings"""
        return {
            "ocr_mode": OCRMode.SIMPLE,
            "plate_detail": PlateDetail.WIDE,
            "detection_interval": 0.15,
            "play_sound": True,
            "play_haptic": True,
            "voice_enabled": True,
            "debug_mode": False,
        }

    def _coerce(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and convert raw values (raises ValueError)"""
        coerced = {}
        for key, value in values.items():
            if key not in self.FIELDS:
                raise ValueError(f"Unknown setting: {key}")
            if key == "ocr_mode":
                value = OCRMode(value)
            elif key == "plate_detail":
                value = PlateDetail(value)
            elif key == "detection_interval":
                value = min(MAX_DETECTION_INTERVAL, max(MIN_DETECTION_INTERVAL, float(value)))
            else:
                value = bool(value)
            coerced[key] = value
        return coerced

    def get(self, key: str, default: Any = None) -> Any:
        """Get setting by key"""
        return self._values.get(key, default)

    def update(self, **changes: Any) -> FrozenSet[str]:
        """
        Apply changes and notify subscribers.

        Returns:
            Names of the fields whose value actually changed
        """
        coerced = self._coerce(changes)
        with self._lock:
            changed = frozenset(
                key for key, value in coerced.items() if self._values.get(key) != value
            )
            self._values.update(coerced)
            listeners = list(self._listeners)

        if changed:
            for listener in listeners:
                try:
                    listener(changed, self)
                except Exception as e:
                    print(f"[Settings] Listener failed: {e}")

        return changed

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Callable that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def to_dict(self) -> Dict[str, Any]:
        values = dict(self._values)
        values["ocr_mode"] = values["ocr_mode"].value
        values["plate_detail"] = values["plate_detail"].value
        return values

    @property
    def ocr_mode(self) -> OCRMode:
        return self._values["ocr_mode"]

    @property
    def plate_detail(self) -> PlateDetail:
        return self._values["plate_detail"]

    @property
    def detection_interval(self) -> float:
        return self._values["detection_interval"]

    @property
    def play_sound(self) -> bool:
        return self._values["play_sound"]

    @property
    def play_haptic(self) -> bool:
        return self._values["play_haptic"]

    @property
    def voice_enabled(self) -> bool:
        return self._values["voice_enabled"]

    @property
    def debug_mode(self) -> bool:
        return self._values["debug_mode"]
