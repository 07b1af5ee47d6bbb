from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from audio_monitor import PLACEHOLDER_STATE, AudioDeviceState
from recording_state import RecordingState
from shortcuts import ShortcutBindings


@dataclass
class AppState:
    """Mutable application state, owned by the main window and touched only on the Qt main thread."""

    recording_state: RecordingState = RecordingState.STOPPED
    current_microphone: Optional[str] = None
    system_audio: AudioDeviceState = PLACEHOLDER_STATE
    shortcuts: ShortcutBindings = field(default_factory=ShortcutBindings)
