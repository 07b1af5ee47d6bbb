"""
QWebChannel object shared with the hosted page.

The page script reaches these slots as ``channel.objects.voiceNotesHost``.
Slots run on the GUI thread, so none of them may shell out: audio and mute
queries answer from the monitor's last poll, and a mute toggle runs on a
worker whose result arrives through the ``muteToggled`` signal.
"""
from typing import Any, Dict, Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from audio_monitor import PLACEHOLDER_STATE, AudioMonitor, MuteState
from gui.constants import logger
from gui.workers import MuteToggleWorker

BRIDGE_OBJECT_NAME = "voiceNotesHost"


class PageBridge(QObject):
    """Host side of the page message channel."""

    microphone_changed = pyqtSignal(str)
    # {success, isMuted, sourceName} or {success: false, error}
    muteToggled = pyqtSignal("QVariantMap")

    def __init__(self, monitor: AudioMonitor, parent=None):
        super().__init__(parent)
        self._monitor = monitor
        self._toggle_worker: Optional[MuteToggleWorker] = None

    @property
    def toggle_in_progress(self) -> bool:
        return self._toggle_worker is not None

    @pyqtSlot(str)
    def updateMicrophoneInfo(self, label: str):
        logger.debug(f"Bridge: microphone update from page: {label}")
        self.microphone_changed.emit(label)

    @pyqtSlot(result="QVariantMap")
    def getSystemAudioInfo(self) -> Dict[str, Any]:
        return (self._monitor.latest or PLACEHOLDER_STATE).to_dict()

    @pyqtSlot(result="QVariantMap")
    def getMicrophoneMuteStatus(self) -> Dict[str, Any]:
        return (self._monitor.mute_status or MuteState(False, "")).to_dict()

    @pyqtSlot(result="QVariantMap")
    def toggleMicrophoneMute(self) -> Dict[str, Any]:
        """Start a mute toggle; returns ``{accepted}`` at once."""
        if self._toggle_worker is not None:
            logger.debug("Bridge: mute toggle already running")
            return {"accepted": False}
        worker = MuteToggleWorker(self._monitor, self)
        worker.result_ready.connect(self._on_toggle_result)
        worker.finished.connect(self._on_toggle_finished)
        worker.finished.connect(worker.deleteLater)
        self._toggle_worker = worker
        worker.start()
        return {"accepted": True}

    def shutdown(self, timeout_ms: int = 5000):
        """Wait for a running mute toggle before the bridge is torn down."""
        worker = self._toggle_worker
        if worker is not None and worker.isRunning():
            worker.wait(timeout_ms)

    def _on_toggle_result(self, result: Dict[str, Any]):
        self.muteToggled.emit(result)

    def _on_toggle_finished(self):
        worker, self._toggle_worker = self._toggle_worker, None
        if worker is not None:
            # finished is emitted just before the thread exits
            worker.wait()
