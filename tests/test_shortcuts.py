import json

import pytest

from gui.constants import load_config
from shortcuts import (
    DEFAULT_SHORTCUTS, FIXED_SHORTCUTS, FULL_SCREEN_SHORTCUT, ShortcutBindings, _PRIMARY,
    build_hotkey_map, to_pynput_hotkey,
)


def write_config(tmp_path, payload):
    path = tmp_path / "config.json"
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return path


# --- Configuration loading ---

def test_absent_config_gives_defaults_exactly(tmp_path):
    config = load_config(tmp_path / "missing.json")

    assert config == {}
    assert ShortcutBindings.from_config(config).as_dict() == DEFAULT_SHORTCUTS


def test_invalid_json_gives_defaults(tmp_path):
    config = load_config(write_config(tmp_path, "{ not json"))

    assert config == {}
    assert ShortcutBindings.from_config(config) == ShortcutBindings()


def test_non_object_config_gives_defaults(tmp_path):
    assert load_config(write_config(tmp_path, ["Ctrl+Alt+R"])) == {}


def test_partial_override(tmp_path):
    config = load_config(write_config(tmp_path, {"shortcuts": {"pause": "Ctrl+Shift+P"}}))

    assert ShortcutBindings.from_config(config).as_dict() == {
        "record": "Ctrl+Alt+R",
        "pause": "Ctrl+Shift+P",
        "stop": "Ctrl+Alt+S",
    }


def test_invalid_values_fall_back_per_action():
    bindings = ShortcutBindings.from_config({
        "shortcuts": {"record": 42, "pause": "   ", "stop": " Ctrl+Alt+X ", "rewind": "Ctrl+Alt+W"},
    })

    assert bindings.as_dict() == {"record": "Ctrl+Alt+R", "pause": "Ctrl+Alt+P", "stop": "Ctrl+Alt+X"}


def test_non_object_shortcuts_section():
    assert ShortcutBindings.from_config({"shortcuts": "Ctrl+Alt+R"}) == ShortcutBindings()
    assert ShortcutBindings.from_config(None) == ShortcutBindings()


def test_updated_returns_new_bindings():
    original = ShortcutBindings()

    changed = original.updated({"record": "F9"})

    assert changed.record == "F9"
    assert original.record == "Ctrl+Alt+R"


def test_all_bindings_lists_fixed_keys_first():
    bindings = ShortcutBindings().all_bindings()

    assert bindings[:len(FIXED_SHORTCUTS)] == list(FIXED_SHORTCUTS)
    assert bindings[len(FIXED_SHORTCUTS):] == [
        ("Ctrl+Alt+R", "record"), ("Ctrl+Alt+P", "pause"), ("Ctrl+Alt+S", "stop"),
    ]


# --- Accelerator conversion ---

@pytest.mark.parametrize("accelerator, expected", [
    ("Ctrl+Alt+R", "<ctrl>+<alt>+r"),
    ("ctrl + shift + p", "<ctrl>+<shift>+p"),
    ("F10", "<f10>"),
    ("Ctrl+Alt+F5", "<ctrl>+<alt>+<f5>"),
    ("Alt+Space", "<alt>+<space>"),
    ("Ctrl+Ctrl+9", "<ctrl>+9"),
    ("MediaPlayPause", "<media_play_pause>"),
])
def test_to_pynput_hotkey(accelerator, expected):
    assert to_pynput_hotkey(accelerator) == expected


def test_command_or_control_follows_platform():
    assert to_pynput_hotkey("CommandOrControl+Shift+R") == f"{_PRIMARY}+<shift>+r"
    assert to_pynput_hotkey("CmdOrCtrl+R") == f"{_PRIMARY}+r"


@pytest.mark.parametrize("accelerator", [
    "",
    "Ctrl+",
    "Ctrl+Alt",
    "Ctrl+A+B",
    "Ctrl+Hyper+R",
    "F25",
])
def test_invalid_accelerators(accelerator):
    with pytest.raises(ValueError):
        to_pynput_hotkey(accelerator)


def test_build_hotkey_map_defaults():
    hotkeys = build_hotkey_map(ShortcutBindings())

    assert hotkeys == {
        "<f10>": ["record"],
        "<f11>": ["pause"],
        "<f12>": ["stop"],
        "<ctrl>+<alt>+<f5>": ["reload"],
        "<ctrl>+<alt>+r": ["record"],
        "<ctrl>+<alt>+p": ["pause"],
        "<ctrl>+<alt>+s": ["stop"],
    }


def test_build_hotkey_map_skips_invalid_and_merges_duplicates():
    bindings = ShortcutBindings(record="F10", pause="Ctrl+Nope+P", stop="Ctrl+Alt+S")

    hotkeys = build_hotkey_map(bindings)

    assert hotkeys["<f10>"] == ["record"]
    assert len(hotkeys) == 5
    assert hotkeys["<f11>"] == ["pause"]
    assert not any("nope" in hotkey for hotkey in hotkeys)
    assert hotkeys["<ctrl>+<alt>+s"] == ["stop"]


def test_full_screen_shortcut_does_not_shadow_global_shortcuts():
    hotkey = to_pynput_hotkey(FULL_SCREEN_SHORTCUT)

    assert hotkey == "<ctrl>+<shift>+f"
    assert hotkey not in build_hotkey_map(ShortcutBindings())
    assert "<f11>" in build_hotkey_map(ShortcutBindings())
