"""
Main application window for Voice Notes.

Owns the application state and wires the web view, page bridge, audio
monitor, tray icon, global shortcuts and recording coordinator together.
Everything here runs on the Qt main thread; the audio poller and the hotkey
listener only reach it through queued signals.
"""
import sys
from typing import Any, Dict, Optional

from PyQt6.QtCore import QUrl, pyqtSignal
from PyQt6.QtGui import QAction, QDesktopServices, QKeySequence
from PyQt6.QtWidgets import QApplication, QMainWindow

from audio_monitor import AudioDeviceState, AudioMonitor
from button_locator import ButtonLocator
from recording_state import RecordingCoordinator, RecordingState
from shortcuts import FULL_SCREEN_SHORTCUT, ShortcutBindings
from version import WEBSITE_URL

from gui.bridge import PageBridge
from gui.constants import (
    ALLOWED_DOMAIN, APP_NAME, APP_URL, APP_VERSION,
    DEFAULT_AUDIO_POLL_INTERVAL_MS, PROFILE_DIR, load_config, logger,
    setup_logging,
)
from gui.dialogs import LogViewerDialog, show_about
from gui.hotkeys import GlobalHotkeyListener
from gui.icons import IconManager
from gui.state import AppState
from gui.tray import RecordingTray
from gui.web_view import VoiceNotesView, create_profile

ZOOM_STEP = 0.1
ZOOM_MIN = 0.25
ZOOM_MAX = 5.0


def _poll_interval_ms(config: Dict[str, Any]) -> int:
    value = config.get("audio_poll_interval_ms", DEFAULT_AUDIO_POLL_INTERVAL_MS)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        logger.warning(f"Config: invalid audio_poll_interval_ms {value!r}, "
                       f"using {DEFAULT_AUDIO_POLL_INTERVAL_MS}")
        return DEFAULT_AUDIO_POLL_INTERVAL_MS
    return value


def _app_url(config: Dict[str, Any]) -> str:
    value = config.get("app_url")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return APP_URL


class VoiceNotesWindow(QMainWindow):
    """Main application window for Voice Notes."""

    # Emitted from the audio poller thread; delivered queued on the main thread
    audio_state_changed = pyqtSignal(object)

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__()

        # State
        self.config: Dict[str, Any] = config or {}
        self.state = AppState(shortcuts=ShortcutBindings.from_config(self.config))
        self._quitting = False
        self._hide_hint_shown = False
        self._log_viewer: Optional[LogViewerDialog] = None

        self.monitor = AudioMonitor()
        self._unsubscribe_audio = self.monitor.subscribe(self.audio_state_changed.emit)
        self.audio_state_changed.connect(self._on_audio_state_changed)

        self.bridge = PageBridge(self.monitor, self)
        self.bridge.microphone_changed.connect(self._on_microphone_changed)

        self._setup_window()
        self._setup_menubar()
        self._setup_tray()

        self.hotkeys = GlobalHotkeyListener(self)
        self.hotkeys.action_triggered.connect(self._on_hotkey_action)

        self.coordinator = RecordingCoordinator(
            self.state,
            self.view.invoke_page_function,
            self._notify,
            self._on_recording_state_changed,
        )

    @property
    def tray_available(self) -> bool:
        return self.tray is not None

    def _setup_window(self):
        """Configure main window properties and the embedded browser."""
        self.setWindowTitle(APP_NAME)
        self.setWindowIcon(IconManager.get_icon("mic", size=64))
        self.setMinimumSize(800, 600)
        self.resize(1200, 800)

        # The profile must outlive every page created from it
        profile = create_profile(PROFILE_DIR, QApplication.instance())
        self.view = VoiceNotesView(profile, ALLOWED_DOMAIN, self.bridge, ButtonLocator(), self)
        self.view.titleChanged.connect(self._on_title_changed)
        self.view.loadFinished.connect(self._on_load_finished)
        self.setCentralWidget(self.view)

    def _setup_menubar(self):
        """Create the application menu bar."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("File")

        reload_config_action = QAction("Reload Configuration", self)
        reload_config_action.triggered.connect(self._on_reload_configuration)
        file_menu.addAction(reload_config_action)

        file_menu.addSeparator()

        quit_action = QAction("Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.setMenuRole(QAction.MenuRole.QuitRole)
        quit_action.triggered.connect(self._quit)
        file_menu.addAction(quit_action)

        # View menu
        view_menu = menubar.addMenu("View")

        reload_action = QAction(IconManager.get_icon("refresh"), "Reload", self)
        reload_action.setShortcut(QKeySequence.StandardKey.Refresh)
        reload_action.triggered.connect(self._reload_page)
        view_menu.addAction(reload_action)

        view_menu.addSeparator()

        zoom_in_action = QAction("Zoom In", self)
        zoom_in_action.setShortcut(QKeySequence.StandardKey.ZoomIn)
        zoom_in_action.triggered.connect(lambda: self._change_zoom(ZOOM_STEP))
        view_menu.addAction(zoom_in_action)

        zoom_out_action = QAction("Zoom Out", self)
        zoom_out_action.setShortcut(QKeySequence.StandardKey.ZoomOut)
        zoom_out_action.triggered.connect(lambda: self._change_zoom(-ZOOM_STEP))
        view_menu.addAction(zoom_out_action)

        zoom_reset_action = QAction("Actual Size", self)
        zoom_reset_action.setShortcut(QKeySequence("Ctrl+0"))
        zoom_reset_action.triggered.connect(lambda: self.view.setZoomFactor(1.0))
        view_menu.addAction(zoom_reset_action)

        view_menu.addSeparator()

        self.fullscreen_action = QAction("Full Screen", self)
        self.fullscreen_action.setCheckable(True)
        self.fullscreen_action.setShortcut(QKeySequence(FULL_SCREEN_SHORTCUT))
        self.fullscreen_action.toggled.connect(self._set_fullscreen)
        view_menu.addAction(self.fullscreen_action)

        # Help menu
        help_menu = menubar.addMenu("Help")

        log_action = QAction("View Log", self)
        log_action.triggered.connect(self._show_log_viewer)
        help_menu.addAction(log_action)

        website_action = QAction("Visit Website", self)
        website_action.triggered.connect(lambda: QDesktopServices.openUrl(QUrl(WEBSITE_URL)))
        help_menu.addAction(website_action)

        help_menu.addSeparator()

        about_action = QAction(f"About {APP_NAME}", self)
        about_action.setMenuRole(QAction.MenuRole.AboutRole)
        about_action.triggered.connect(lambda: show_about(self))
        help_menu.addAction(about_action)

    def _setup_tray(self):
        """Setup system tray icon (optional)."""
        self.tray: Optional[RecordingTray] = None
        if not RecordingTray.is_available():
            logger.warning("System tray not available; closing the window will quit")
            return

        self.tray = RecordingTray(self)
        self.tray.show_requested.connect(self._show_window)
        self.tray.toggle_window_requested.connect(self._toggle_window)
        self.tray.refresh_requested.connect(self._reload_page)
        self.tray.record_requested.connect(lambda: self.coordinator.start())
        self.tray.pause_requested.connect(lambda: self.coordinator.pause())
        self.tray.stop_requested.connect(lambda: self.coordinator.stop())
        self.tray.quit_requested.connect(self._quit)

    # --- Lifecycle ---

    def start(self):
        """Load the web app and start the background services."""
        url = _app_url(self.config)
        logger.info(f"Loading {url}")
        self.view.setUrl(QUrl(url))

        if self.tray is not None:
            self.tray.show()
            self._refresh_tray()

        self.monitor.start_monitoring(_poll_interval_ms(self.config))
        self._register_hotkeys()

    def _shutdown(self):
        logger.info("Shutting down background services")
        self.monitor.stop_monitoring()
        self._unsubscribe_audio()
        self.bridge.shutdown()
        self.hotkeys.unregister()
        if self.tray is not None:
            self.tray.hide()

    def _quit(self):
        self._quitting = True
        self.close()
        QApplication.quit()

    def closeEvent(self, event):
        """Hide to the tray instead of closing, unless quitting."""
        if not self._quitting and self.tray is not None:
            event.ignore()
            self.hide()
            if not self._hide_hint_shown:
                self._hide_hint_shown = True
                self.tray.notify(f"{APP_NAME} is still running in the system tray.")
            return

        self._quitting = True
        self._shutdown()
        logger.info("Application window closed")
        event.accept()

    # --- Window helpers ---

    def _show_window(self):
        if self.isMinimized():
            self.showNormal()
        self.show()
        self.raise_()
        self.activateWindow()

    def _toggle_window(self):
        if self.isVisible() and not self.isMinimized():
            self.hide()
        else:
            self._show_window()

    def _reload_page(self):
        logger.info("Reloading web app")
        self.view.reload()
        self._notify("Voice Notes refreshed", False)

    def _change_zoom(self, delta: float):
        factor = min(ZOOM_MAX, max(ZOOM_MIN, self.view.zoomFactor() + delta))
        self.view.setZoomFactor(factor)
        logger.debug(f"Zoom factor set to {factor:.2f}")

    def _set_fullscreen(self, enabled: bool):
        if enabled:
            self.showFullScreen()
        else:
            self.showNormal()

    def _show_log_viewer(self):
        if self._log_viewer is None:
            self._log_viewer = LogViewerDialog(self)
        self._log_viewer.show()
        self._log_viewer.raise_()
        self._log_viewer.activateWindow()

    def _on_title_changed(self, title: str):
        self.setWindowTitle(f"{title} - {APP_NAME}" if title else APP_NAME)

    def _on_load_finished(self, ok: bool):
        if ok:
            logger.info(f"Page loaded: {self.view.url().toString()}")
        else:
            logger.warning(f"Page failed to load: {self.view.url().toString()}")

    # --- Configuration and shortcuts ---

    def _register_hotkeys(self):
        try:
            self.hotkeys.register(self.state.shortcuts)
        except Exception as e:
            logger.error(f"Hotkeys: could not register global shortcuts: {e}")
            self._notify("Global shortcuts are unavailable.", True)

    def _on_reload_configuration(self):
        self.config = load_config()
        setup_logging(self.config)
        self.state.shortcuts = ShortcutBindings.from_config(self.config)
        logger.info(f"Shortcuts: {self.state.shortcuts.as_dict()}")
        self._register_hotkeys()
        self._refresh_tray()
        self._notify("Configuration reloaded", False)

    def _on_hotkey_action(self, action: str):
        if action == "record":
            self.coordinator.start()
        elif action == "pause":
            self.coordinator.pause()
        elif action == "stop":
            self.coordinator.stop()
        elif action == "reload":
            self._reload_page()
        else:
            logger.warning(f"Hotkeys: unknown action '{action}'")

    # --- State updates ---

    def _on_audio_state_changed(self, device: AudioDeviceState):
        self.state.system_audio = device
        logger.debug(f"System audio: {device.name} at {round(device.level * 100)}%")
        self._refresh_tray()

    def _on_microphone_changed(self, label: str):
        self.state.current_microphone = label or None
        self._refresh_tray()

    def _on_recording_state_changed(self, state: RecordingState):
        self.statusBar().showMessage(f"Status: {state.label}")
        self._refresh_tray()

    def _refresh_tray(self):
        if self.tray is not None:
            self.tray.refresh(self.state)

    def _notify(self, message: str, is_error: bool = False):
        self.statusBar().showMessage(message, 5000)
        if self.tray is not None:
            self.tray.notify(message, is_error)


def main():
    """Application entry point."""
    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)
    app.setOrganizationName("VoiceNotes")

    config = load_config()
    setup_logging(config)
    logger.info(f"Application starting (version {APP_VERSION})")

    window = VoiceNotesWindow(config)
    # With a tray icon the app keeps running after the window is hidden
    app.setQuitOnLastWindowClosed(not window.tray_available)
    window.start()
    window.show()

    exit_code = app.exec()
    logger.info(f"Application exiting (code {exit_code})")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
