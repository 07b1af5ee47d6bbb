"""
Tray and menu icons drawn from inline Lucide SVGs (https://lucide.dev/icons/).

Icons follow the palette (dark stroke on light themes, light stroke on dark
ones) in one of a few tints. The tray icon takes its tint from the recording
state so the state is visible without opening the menu.
"""
from typing import Dict, Optional, Tuple

from PyQt6.QtCore import QByteArray, QRectF, Qt
from PyQt6.QtGui import QIcon, QPainter, QPalette, QPixmap
from PyQt6.QtSvg import QSvgRenderer
from PyQt6.QtWidgets import QApplication

from recording_state import RecordingState

# tint -> (light theme stroke, dark theme stroke)
_STROKES: Dict[str, Tuple[str, str]] = {
    "default": ("#333333", "#E1E1E6"),
    "danger": ("#C62828", "#E57373"),
    "warning": ("#B78B00", "#F0B400"),
}

_STATE_TINTS: Dict[RecordingState, str] = {
    RecordingState.STOPPED: "default",
    RecordingState.RECORDING: "danger",
    RecordingState.PAUSED: "warning",
}

# Lucide icon bodies; the <svg> wrapper and stroke colour are added by _svg()
_LUCIDE_BODIES: Dict[str, str] = {
    "mic": (
        '<path d="M12 2a3 3 0 0 0-3 3v7a3 3 0 0 0 6 0V5a3 3 0 0 0-3-3Z"/>'
        '<path d="M19 10v2a7 7 0 0 1-14 0v-2"/>'
        '<line x1="12" x2="12" y1="19" y2="22"/>'
    ),
    "record": (
        '<circle cx="12" cy="12" r="10"/>'
        '<circle cx="12" cy="12" r="4" fill="currentColor"/>'
    ),
    "pause": (
        '<rect x="14" y="4" width="4" height="16" rx="1"/>'
        '<rect x="6" y="4" width="4" height="16" rx="1"/>'
    ),
    "stop": '<rect width="18" height="18" x="3" y="3" rx="2"/>',
    "refresh": (
        '<path d="M3 12a9 9 0 0 1 9-9 9.75 9.75 0 0 1 6.74 2.74L21 8"/>'
        '<path d="M21 3v5h-5"/>'
        '<path d="M21 12a9 9 0 0 1-9 9 9.75 9.75 0 0 1-6.74-2.74L3 16"/>'
        '<path d="M8 16H3v5"/>'
    ),
    "volume": (
        '<path d="M11 4.702a.705.705 0 0 0-1.203-.498L6.413 7.587A1.4 1.4 0 0 1 '
        '5.416 8H3a1 1 0 0 0-1 1v6a1 1 0 0 0 1 1h2.416a1.4 1.4 0 0 1 .997.413'
        'l3.383 3.384A.705.705 0 0 0 11 19.298z"/>'
        '<path d="M16 9a5 5 0 0 1 0 6"/>'
        '<path d="M19.364 18.364a9 9 0 0 0 0-12.728"/>'
    ),
}

# Pixmap scales added to every icon so HiDPI screens get a sharp version
_SCALES = (1, 2)


def _svg(body: str, colour: str) -> bytes:
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24" '
        f'viewBox="0 0 24 24" fill="none" stroke="{colour}" stroke-width="2" '
        'stroke-linecap="round" stroke-linejoin="round">'
        f'{body.replace("currentColor", colour)}</svg>'
    ).encode("utf-8")


class IconManager:
    """Class-level icon factory; rendered icons are cached per (name, tint, theme, size)."""

    _icons: Dict[Tuple[str, str, bool, int], QIcon] = {}

    @classmethod
    def get_icon(cls, name: str, *, is_dark: Optional[bool] = None,
                 tint: str = "default", size: int = 24) -> QIcon:
        """Icon *name* in *tint*; ``is_dark=None`` reads the theme from the palette."""
        dark = cls.is_dark_theme() if is_dark is None else is_dark
        key = (name, tint, dark, size)
        icon = cls._icons.get(key)
        if icon is None:
            icon = cls._icons[key] = cls._build(name, tint, dark, size)
        return icon

    @classmethod
    def tray_icon(cls, state: RecordingState) -> QIcon:
        return cls.get_icon("mic", tint=_STATE_TINTS[state], size=64)

    @staticmethod
    def is_dark_theme() -> bool:
        app = QApplication.instance()
        if app is None:
            return False
        return app.palette().color(QPalette.ColorRole.Window).lightness() < 128

    @staticmethod
    def _build(name: str, tint: str, dark: bool, size: int) -> QIcon:
        colour = _STROKES[tint][1 if dark else 0]
        renderer = QSvgRenderer(QByteArray(_svg(_LUCIDE_BODIES[name], colour)))
        renderer.setAspectRatioMode(Qt.AspectRatioMode.KeepAspectRatio)

        icon = QIcon()
        for scale in _SCALES:
            pixmap = QPixmap(size * scale, size * scale)
            pixmap.fill(Qt.GlobalColor.transparent)
            painter = QPainter(pixmap)
            # Render into the whole pixmap, not the SVG's own 24px box
            renderer.render(painter, QRectF(pixmap.rect()))
            painter.end()
            pixmap.setDevicePixelRatio(scale)
            icon.addPixmap(pixmap)
        return icon
