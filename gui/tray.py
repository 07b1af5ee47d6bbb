"""
System tray icon and menu reflecting recording state and audio-input status.
"""
from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtWidgets import QMenu, QSystemTrayIcon

from gui.constants import APP_NAME, logger
from gui.icons import IconManager
from gui.state import AppState
from recording_state import RecordingState


def level_bar(level: float, width: int = 10) -> str:
    """Text gauge for a [0, 1] level, one block per 10%."""
    filled = max(0, min(width, int(round(level * 100)) // 10))
    return "█" * filled + "░" * (width - filled)


class RecordingTray(QObject):
    """Owns the QSystemTrayIcon; menu clicks are re-emitted as signals."""

    show_requested = pyqtSignal()
    toggle_window_requested = pyqtSignal()
    refresh_requested = pyqtSignal()
    record_requested = pyqtSignal()
    pause_requested = pyqtSignal()
    stop_requested = pyqtSignal()
    quit_requested = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._icon = QSystemTrayIcon(IconManager.tray_icon(RecordingState.STOPPED), parent)
        self._icon.setToolTip(f"{APP_NAME} - Right-click for options")

        self._menu = QMenu()
        show_action = self._menu.addAction(f"Show {APP_NAME}")
        show_action.triggered.connect(self.show_requested)
        refresh_action = self._menu.addAction(IconManager.get_icon("refresh"), "Refresh (Ctrl+Alt+F5)")
        refresh_action.triggered.connect(self.refresh_requested)

        self._menu.addSeparator()
        self._status_action = self._menu.addAction("")
        self._status_action.setEnabled(False)

        self._menu.addSeparator()
        self._record_action = self._menu.addAction(IconManager.get_icon("record", tint="danger"), "")
        self._record_action.triggered.connect(self.record_requested)
        self._pause_action = self._menu.addAction(IconManager.get_icon("pause", tint="warning"), "")
        self._pause_action.triggered.connect(self.pause_requested)
        self._stop_action = self._menu.addAction(IconManager.get_icon("stop"), "")
        self._stop_action.triggered.connect(self.stop_requested)

        self._menu.addSeparator()
        self._microphone_action = self._menu.addAction(IconManager.get_icon("mic"), "")
        self._microphone_action.setEnabled(False)
        self._system_action = self._menu.addAction(IconManager.get_icon("volume"), "")
        self._system_action.setEnabled(False)
        self._level_action = self._menu.addAction("")
        self._level_action.setEnabled(False)

        self._menu.addSeparator()
        quit_action = self._menu.addAction("Quit")
        quit_action.triggered.connect(self.quit_requested)

        self._icon.setContextMenu(self._menu)
        self._icon.activated.connect(self._on_activated)

    @staticmethod
    def is_available() -> bool:
        return QSystemTrayIcon.isSystemTrayAvailable()

    def show(self):
        self._icon.show()
        logger.info("Tray icon created")

    def hide(self):
        self._icon.hide()

    def refresh(self, state: AppState):
        """Rebuild labels and enabled states from the current application state."""
        recording = state.recording_state
        shortcuts = state.shortcuts
        self._icon.setIcon(IconManager.tray_icon(recording))
        self._icon.setToolTip(f"{APP_NAME} - {recording.label}")
        self._status_action.setText(f"Status: {recording.label}")

        record_label = "Resume" if recording is RecordingState.PAUSED else "Record"
        self._record_action.setText(f"{record_label} (F10 / {shortcuts.record})")
        self._record_action.setEnabled(recording is not RecordingState.RECORDING)
        self._pause_action.setText(f"Pause (F11 / {shortcuts.pause})")
        self._pause_action.setEnabled(recording is RecordingState.RECORDING)
        self._stop_action.setText(f"Stop (F12 / {shortcuts.stop})")
        self._stop_action.setEnabled(recording is not RecordingState.STOPPED)

        microphone = state.current_microphone
        self._microphone_action.setVisible(bool(microphone))
        if microphone:
            self._microphone_action.setText(f"Web: {microphone}")

        audio = state.system_audio
        percent = round(audio.level * 100)
        self._system_action.setText(f"System: {audio.name}")
        self._level_action.setText(f"Level: {percent}% [{level_bar(audio.level)}]")

    def notify(self, message: str, is_error: bool = False):
        icon = (QSystemTrayIcon.MessageIcon.Warning if is_error
                else QSystemTrayIcon.MessageIcon.Information)
        self._icon.showMessage(APP_NAME, message, icon, 3000)

    def _on_activated(self, reason: QSystemTrayIcon.ActivationReason):
        if reason == QSystemTrayIcon.ActivationReason.DoubleClick:
            self.toggle_window_requested.emit()
        elif reason == QSystemTrayIcon.ActivationReason.Trigger:
            self.show_requested.emit()
