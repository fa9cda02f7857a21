"""
Alert Controller

Debounces watchlist matches and drives the notification channels.
"""

import asyncio
import threading
import time
from typing import Any, Callable, Optional

from platewatch.alerts.sinks import NotificationSinks
from platewatch.config import DEFAULT_CONFIG, ScannerConfig
from platewatch.schemas import RecognizedItem
from platewatch.settings import ScannerSettings


Scheduler = Callable[[float, Callable[[], None]], Any]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> Any:
    """
    Run callback after delay seconds.

    Uses the running event loop when called from one, a timer thread otherwise.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay, callback)


class AlertController:
    """
    Fires at most one alert per debounce window.

    Channels, in order: haptic pulse, audio cue, visual signal (cleared
    again after overlay_seconds), spoken warning followed by the plate.
    Every channel is best-effort; one failing never blocks the others.

    Must only be driven from the detection store's writer task.
    """

    def __init__(
        self,
        settings: ScannerSettings,
        sinks: Optional[NotificationSinks] = None,
        config: ScannerConfig = DEFAULT_CONFIG,
        scheduler: Scheduler = loop_scheduler
    ):
        self.settings = settings
        self.sinks = sinks or NotificationSinks()
        self.config = config
        self.scheduler = scheduler

        self.last_fired_at = float("-inf")
        self.alerts_fired = 0
        self.alerts_suppressed = 0
        self.channel_errors = 0

    def on_match(self, item: RecognizedItem, now: Optional[float] = None) -> bool:
        """
        Handle a match.

        Args:
            item: The matching recognized item
            now: Monotonic time in seconds (default: time.monotonic())

        Returns:
            True if the alert fired, False if debounced
        """
        if now is None:
            now = time.monotonic()

        if now - self.last_fired_at < self.config.alert_debounce_seconds:
            self.alerts_suppressed += 1
            return False

        self.last_fired_at = now
        self.alerts_fired += 1
        print(f"[Alert] MATCH: {item.text}")

        if self.settings.play_haptic:
            self._run_channel("haptic", self.sinks.haptic.pulse)

        if self.settings.play_sound:
            self._run_channel("audio", self.sinks.audio.play, self.config.alert_sound_id)

        self._run_channel("visual", self.sinks.visual.set_active, True)
        self._run_channel(
            "visual",
            self.scheduler,
            self.config.overlay_seconds,
            lambda: self._run_channel("visual", self.sinks.visual.set_active, False),
        )

        if self.settings.voice_enabled:
            self._speak(item.text)

        return True

    def _speak(self, plate_text: str) -> None:
        speech = self.sinks.speech
        language = self.config.voice_language

        self._run_channel("speech", speech.stop)
        self._run_channel("speech", speech.speak, self.config.warning_phrase, language, self.config.warning_rate)
        self._run_channel(
            "speech",
            self.scheduler,
            self.config.voice_delay_seconds,
            lambda: self._run_channel("speech", speech.speak, plate_text, language, self.config.plate_rate),
        )

    def _run_channel(self, channel: str, func: Callable, *args: Any) -> None:
        try:
            func(*args)
        except Exception as e:
            self.channel_errors += 1
            print(f"[Alert] {channel} channel failed: {e}")

    def get_stats(self) -> dict:
        return {
            "alerts_fired": self.alerts_fired,
            "alerts_suppressed": self.alerts_suppressed,
            "channel_errors": self.channel_errors,
        }
