"""
Background worker threads for blocking audio-tool calls made on behalf of the GUI.
"""
from PyQt6.QtCore import QThread, pyqtSignal

from audio_monitor import AudioMonitor, MuteToggleResult
from gui.constants import logger


class MuteToggleWorker(QThread):
    """Toggles the default source's mute flag off the GUI thread."""

    result_ready = pyqtSignal(dict)  # MuteToggleResult.to_dict()

    def __init__(self, monitor: AudioMonitor, parent=None):
        super().__init__(parent)
        self.monitor = monitor

    def run(self):
        try:
            result = self.monitor.toggle_mute()
        except Exception as e:
            logger.warning(f"Mute toggle: {e}")
            result = MuteToggleResult.failure(str(e))
        self.result_ready.emit(result.to_dict())
