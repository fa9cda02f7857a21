"""
Notification Sinks

Output channels driven by the alert controller. Each channel is optional
hardware from the core's point of view; console implementations are used
when nothing better is wired in.
"""

import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List


class HapticSink(ABC):
    """Vibration / haptic pulse"""

    @abstractmethod
    def pulse(self) -> None:
        pass


class AudioSink(ABC):
    """Short audio cue"""

    @abstractmethod
    def play(self, sound_id: int) -> None:
        pass


class SpeechSink(ABC):
    """Speech synthesizer accepting language-tagged utterances"""

    @abstractmethod
    def speak(self, text: str, language: str, rate: float) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        """Cancel any utterance in progress"""
        pass


class VisualSignal(ABC):
    """Boolean match indicator consumed by a presentation layer"""

    @abstractmethod
    def set_active(self, active: bool) -> None:
        pass


class ConsoleHaptic(HapticSink):
    def pulse(self) -> None:
        print("[Alert] Haptic pulse")


class ConsoleAudio(AudioSink):
    def play(self, sound_id: int) -> None:
        # Terminal bell
        sys.stdout.write("\a")
        sys.stdout.flush()
        print(f"[Alert] Sound cue {sound_id}")


class ConsoleSpeech(SpeechSink):
    def speak(self, text: str, language: str, rate: float) -> None:
        print(f"[Alert] Say ({language}, rate {rate}): {text}")

    def stop(self) -> None:
        pass


class MatchOverlay(VisualSignal):
    """
    In-memory match flag.

    Listeners are called with the new value whenever it changes.
    """

    def __init__(self):
        self._active = False
        self._lock = threading.Lock()
        self._listeners: List[Callable[[bool], None]] = []

    @property
    def active(self) -> bool:
        return self._active

    def set_active(self, active: bool) -> None:
        with self._lock:
            changed = self._active != active
            self._active = active
            listeners = list(self._listeners)

        if changed:
            for listener in listeners:
                listener(active)

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe


@dataclass
class NotificationSinks:
    """The four alert channels"""
    haptic: HapticSink = field(default_factory=ConsoleHaptic)
    audio: AudioSink = field(default_factory=ConsoleAudio)
    speech: SpeechSink = field(default_factory=ConsoleSpeech)
    visual: VisualSignal = field(default_factory=MatchOverlay)
