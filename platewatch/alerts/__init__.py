"""
Platewatch Alerts

Debounced match alerts over haptic, audio, visual and speech channels.
"""

from platewatch.alerts.alert_controller import AlertController, loop_scheduler
from platewatch.alerts.sinks import (
    NotificationSinks,
    HapticSink,
    AudioSink,
    SpeechSink,
    VisualSignal,
    MatchOverlay,
)

__all__ = [
    'AlertController',
    'loop_scheduler',
    'NotificationSinks',
    'HapticSink',
    'AudioSink',
    'SpeechSink',
    'VisualSignal',
    'MatchOverlay',
]
