import pytest

# QtWebEngineWidgets must be imported before any Qt application object exists
pytest.importorskip("PyQt6.QtWebEngineWidgets")

from gui.main_window import VoiceNotesWindow


class FakeView:
    def __init__(self):
        self.reloads = 0

    def reload(self):
        self.reloads += 1


class FakeCoordinator:
    def __init__(self):
        self.actions = []

    def start(self):
        self.actions.append("record")

    def pause(self):
        self.actions.append("pause")

    def stop(self):
        self.actions.append("stop")


class WindowStub:
    """Just enough of the window for its action handlers."""

    def __init__(self):
        self.view = FakeView()
        self.coordinator = FakeCoordinator()
        self.notifications = []

    def _notify(self, message, is_error=False):
        self.notifications.append((message, is_error))

    def _reload_page(self):
        VoiceNotesWindow._reload_page(self)


def test_reload_reloads_and_notifies():
    window = WindowStub()

    VoiceNotesWindow._reload_page(window)

    assert window.view.reloads == 1
    assert window.notifications == [("Voice Notes refreshed", False)]


def test_reload_shortcut_notifies():
    window = WindowStub()

    VoiceNotesWindow._on_hotkey_action(window, "reload")

    assert window.view.reloads == 1
    assert window.notifications == [("Voice Notes refreshed", False)]


@pytest.mark.parametrize("action", ["record", "pause", "stop"])
def test_recording_shortcuts_reach_coordinator(action):
    window = WindowStub()

    VoiceNotesWindow._on_hotkey_action(window, action)

    assert window.coordinator.actions == [action]
    assert window.notifications == []
