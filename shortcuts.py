"""
Recording shortcut bindings and accelerator parsing.

Accelerators are written the way the configuration file stores them
(``Ctrl+Alt+R``, ``CommandOrControl+Shift+F9``, ``F10``) and converted to
the ``<ctrl>+<alt>+r`` syntax understood by pynput's ``GlobalHotKeys``.
"""
import logging
import re
import sys
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger("voicenotes_core.shortcuts")

RECORDING_ACTIONS = ("record", "pause", "stop")

DEFAULT_SHORTCUTS: Dict[str, str] = {
    "record": "Ctrl+Alt+R",
    "pause": "Ctrl+Alt+P",
    "stop": "Ctrl+Alt+S",
}

# Always registered, in addition to the configurable set
FIXED_SHORTCUTS: Tuple[Tuple[str, str], ...] = (
    ("F10", "record"),
    ("F11", "pause"),
    ("F12", "stop"),
    ("Ctrl+Alt+F5", "reload"),
)

# Window-local (QAction) shortcut; must not collide with FIXED_SHORTCUTS
FULL_SCREEN_SHORTCUT = "Ctrl+Shift+F"

_PRIMARY = "<cmd>" if sys.platform == "darwin" else "<ctrl>"

_MODIFIERS = {
    "ctrl": "<ctrl>",
    "control": "<ctrl>",
    "commandorcontrol": _PRIMARY,
    "cmdorctrl": _PRIMARY,
    "alt": "<alt>",
    "option": "<alt>",
    "altgr": "<alt_gr>",
    "shift": "<shift>",
    "super": "<cmd>",
    "meta": "<cmd>",
    "cmd": "<cmd>",
    "command": "<cmd>",
}

_NAMED_KEYS = {
    "space": "<space>",
    "tab": "<tab>",
    "enter": "<enter>",
    "return": "<enter>",
    "esc": "<esc>",
    "escape": "<esc>",
    "backspace": "<backspace>",
    "delete": "<delete>",
    "insert": "<insert>",
    "home": "<home>",
    "end": "<end>",
    "pageup": "<page_up>",
    "pagedown": "<page_down>",
    "up": "<up>",
    "down": "<down>",
    "left": "<left>",
    "right": "<right>",
    "mediaplaypause": "<media_play_pause>",
    "medianexttrack": "<media_next>",
    "mediaprevioustrack": "<media_previous>",
}

_FUNCTION_KEY_RE = re.compile(r"^f([1-9]|1[0-9]|20)$")


@dataclass(frozen=True)
class ShortcutBindings:
    """Accelerators for the configurable record / pause / stop shortcuts."""

    record: str = DEFAULT_SHORTCUTS["record"]
    pause: str = DEFAULT_SHORTCUTS["pause"]
    stop: str = DEFAULT_SHORTCUTS["stop"]

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> "ShortcutBindings":
        """Build bindings from the ``shortcuts`` section of the config, defaults otherwise."""
        overrides = (config or {}).get("shortcuts") or {}
        if not isinstance(overrides, Mapping):
            logger.warning(f"Ignoring 'shortcuts' config: expected an object, got {type(overrides).__name__}")
            overrides = {}
        return cls().updated(overrides)

    def updated(self, overrides: Mapping[str, Any]) -> "ShortcutBindings":
        """Return a copy with every valid entry of *overrides* applied."""
        changes: Dict[str, str] = {}
        for action in RECORDING_ACTIONS:
            value = overrides.get(action)
            if value is None:
                continue
            if isinstance(value, str) and value.strip():
                changes[action] = value.strip()
            else:
                logger.warning(f"Ignoring invalid shortcut for '{action}': {value!r}")
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)

    def all_bindings(self) -> List[Tuple[str, str]]:
        """Every (accelerator, action) pair to register: fixed keys first."""
        return list(FIXED_SHORTCUTS) + [(getattr(self, action), action) for action in RECORDING_ACTIONS]


def to_pynput_hotkey(accelerator: str) -> str:
    """Convert ``Ctrl+Alt+R`` style accelerators to pynput hotkey syntax.

    Raises ``ValueError`` for empty parts, unknown key names, or anything
    other than exactly one non-modifier key.
    """
    parts = [part.strip().lower() for part in accelerator.split("+")]
    if not parts or any(not part for part in parts):
        raise ValueError(f"Malformed accelerator: {accelerator!r}")

    modifiers: List[str] = []
    keys: List[str] = []
    for part in parts:
        if part in _MODIFIERS:
            modifier = _MODIFIERS[part]
            if modifier not in modifiers:
                modifiers.append(modifier)
        elif part in _NAMED_KEYS:
            keys.append(_NAMED_KEYS[part])
        elif _FUNCTION_KEY_RE.match(part):
            keys.append(f"<{part}>")
        elif len(part) == 1:
            keys.append(part)
        else:
            raise ValueError(f"Unknown key {part!r} in accelerator {accelerator!r}")

    if len(keys) != 1:
        raise ValueError(f"Accelerator {accelerator!r} must name exactly one key")
    return "+".join(modifiers + keys)


def build_hotkey_map(bindings: ShortcutBindings) -> Dict[str, List[str]]:
    """Map pynput hotkey strings to the actions they trigger.

    Invalid accelerators are skipped with a warning.  Two accelerators that
    resolve to the same keys share one entry.
    """
    hotkeys: Dict[str, List[str]] = {}
    for accelerator, action in bindings.all_bindings():
        try:
            hotkey = to_pynput_hotkey(accelerator)
        except ValueError as e:
            logger.warning(f"Skipping shortcut for '{action}': {e}")
            continue
        actions = hotkeys.setdefault(hotkey, [])
        if action not in actions:
            actions.append(action)
    return hotkeys
