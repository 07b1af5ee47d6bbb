"""
System-wide keyboard shortcuts.

pynput runs its listener on a background thread; every trigger is re-emitted
through a Qt signal so handlers run on the main thread.
"""
import functools
from typing import List, Optional, Tuple

from PyQt6.QtCore import QObject, pyqtSignal
from pynput import keyboard

from gui.constants import logger
from shortcuts import ShortcutBindings, build_hotkey_map


class GlobalHotkeyListener(QObject):
    """Registers the fixed and configurable shortcuts as one pynput GlobalHotKeys set."""

    action_triggered = pyqtSignal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._listener: Optional[keyboard.GlobalHotKeys] = None

    def register(self, bindings: ShortcutBindings) -> List[str]:
        """Replace every registered shortcut with *bindings*; returns the pynput hotkeys."""
        self.unregister()
        hotkey_map = build_hotkey_map(bindings)
        if not hotkey_map:
            logger.warning("Hotkeys: no valid shortcuts to register")
            return []

        callbacks = {
            hotkey: functools.partial(self._on_hotkey, hotkey, tuple(actions))
            for hotkey, actions in hotkey_map.items()
        }
        self._listener = keyboard.GlobalHotKeys(callbacks)
        self._listener.start()
        for hotkey, actions in hotkey_map.items():
            logger.info(f"Hotkeys: {hotkey} -> {', '.join(actions)}")
        return list(callbacks)

    def unregister(self):
        if self._listener is None:
            return
        logger.debug("Hotkeys: stopping listener")
        self._listener.stop()
        self._listener = None

    def _on_hotkey(self, hotkey: str, actions: Tuple[str, ...]):
        # Runs on the pynput thread: only emit, never touch state here.
        logger.info(f"Hotkeys: {hotkey} pressed")
        for action in actions:
            self.action_triggered.emit(action)
