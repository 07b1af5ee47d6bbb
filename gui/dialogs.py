"""
Dialog windows for log viewing and the about box.
"""
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import (
    QHBoxLayout, QMainWindow, QMessageBox, QPushButton, QTextEdit,
    QVBoxLayout, QWidget,
)

import gui.constants as _constants
from gui.constants import APP_NAME, APP_URL, APP_VERSION, logger
from version import WEBSITE_URL

LOG_TAIL_LINES = 200


class LogViewerDialog(QMainWindow):
    """A window for viewing the application log file."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle(f"{APP_NAME} Log")
        self.setMinimumSize(600, 400)
        self.resize(800, 500)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(12, 12, 12, 12)

        self.log_text = QTextEdit()
        self.log_text.setReadOnly(True)
        self.log_text.setFont(QFont("Monospace", 10))
        layout.addWidget(self.log_text)

        btn_layout = QHBoxLayout()
        btn_layout.setSpacing(8)

        self.refresh_btn = QPushButton("Refresh")
        self.refresh_btn.clicked.connect(self._load_log)
        btn_layout.addWidget(self.refresh_btn)

        self.clear_btn = QPushButton("Clear Log")
        self.clear_btn.clicked.connect(self._clear_log)
        btn_layout.addWidget(self.clear_btn)

        btn_layout.addStretch()

        self.close_btn = QPushButton("Close")
        self.close_btn.clicked.connect(self.close)
        btn_layout.addWidget(self.close_btn)

        layout.addLayout(btn_layout)

        self._load_log()

    def _load_log(self):
        """Load the last lines of the current log file."""
        # setup_logging() rebinds the module attribute on every reload
        log_path = _constants.current_log_file_path
        if log_path is None:
            self.log_text.setPlainText("File logging is disabled in configuration.")
            return
        if not log_path.exists():
            self.log_text.setPlainText(f"Log file not found at:\n{log_path}")
            return

        try:
            with open(log_path, 'r', encoding='utf-8') as f:
                all_lines = f.readlines()
        except OSError as e:
            self.log_text.setPlainText(f"Error loading log file: {e}")
            return

        if not all_lines:
            self.log_text.setPlainText("(Log file is empty)")
            return
        tail_lines = all_lines[-LOG_TAIL_LINES:]
        truncated = len(all_lines) > LOG_TAIL_LINES
        header = f"--- Showing last {len(tail_lines)} of {len(all_lines)} lines ---\n\n" if truncated else ""
        self.log_text.setPlainText(header + "".join(tail_lines))
        cursor = self.log_text.textCursor()
        cursor.movePosition(cursor.MoveOperation.End)
        self.log_text.setTextCursor(cursor)

    def _clear_log(self):
        log_path = _constants.current_log_file_path
        if log_path is None or not log_path.exists():
            return

        reply = QMessageBox.question(
            self, "Clear Log",
            "Are you sure you want to clear the log file?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No
        )
        if reply != QMessageBox.StandardButton.Yes:
            return
        try:
            with open(log_path, 'w', encoding='utf-8') as f:
                f.write("")
        except OSError as e:
            QMessageBox.warning(self, "Error", f"Failed to clear log file: {e}")
            return
        self._load_log()
        logger.info("Log viewer: log file cleared by user")


def show_about(parent):
    QMessageBox.about(
        parent,
        f"About {APP_NAME}",
        f"<h3>{APP_NAME}</h3>"
        f"<p>Version {APP_VERSION}</p>"
        f"<p>Desktop wrapper for the Voice Notes web app with global "
        f"recording shortcuts, a tray menu and system microphone status.</p>"
        f"<p>Recording: F10 / F11 / F12, reload: Ctrl+Alt+F5</p>"
        f'<p>App: <a href="{APP_URL}">{APP_URL}</a><br>'
        f'Website: <a href="{WEBSITE_URL}">{WEBSITE_URL}</a></p>'
    )
