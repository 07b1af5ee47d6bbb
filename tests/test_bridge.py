import time
from typing import Sequence

import pytest

QtCore = pytest.importorskip("PyQt6.QtCore")

from audio_monitor import PLACEHOLDER_STATE, AudioMonitor, PulseAudioProbe
from conftest import YETI_SOURCE, FakePactl, FakeRunner
from gui.bridge import PageBridge

TOOL_DELAY = 0.3


class SlowPactl(FakePactl):
    """A ``pactl`` that takes a noticeable time to answer every call."""

    def __call__(self, args: Sequence[str]) -> str:
        time.sleep(TOOL_DELAY)
        return super().__call__(args)


@pytest.fixture(scope="module")
def app():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


def wait_until(app, predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("timed out waiting for the mute toggle")
        app.processEvents()
        time.sleep(0.01)


def make_bridge(runner):
    bridge = PageBridge(AudioMonitor(PulseAudioProbe(runner)))
    toggled = []
    bridge.muteToggled.connect(toggled.append)
    return bridge, toggled


def test_status_slots_answer_from_the_last_poll(app):
    runner = SlowPactl(muted=True)
    bridge, _ = make_bridge(runner)

    started = time.monotonic()
    assert bridge.getSystemAudioInfo() == PLACEHOLDER_STATE.to_dict()
    assert bridge.getMicrophoneMuteStatus() == {"isMuted": False, "sourceName": ""}
    assert time.monotonic() - started < TOOL_DELAY
    assert runner.calls == []

    bridge._monitor.poll()
    calls = len(runner.calls)

    started = time.monotonic()
    assert bridge.getSystemAudioInfo() == {"name": "Yeti Stereo Microphone", "level": 0.64}
    assert bridge.getMicrophoneMuteStatus() == {"isMuted": True, "sourceName": YETI_SOURCE}
    assert time.monotonic() - started < TOOL_DELAY
    assert len(runner.calls) == calls


def test_toggle_returns_at_once_and_reports_through_signal(app):
    runner = SlowPactl(muted=False)
    bridge, toggled = make_bridge(runner)

    started = time.monotonic()
    assert bridge.toggleMicrophoneMute() == {"accepted": True}
    assert time.monotonic() - started < TOOL_DELAY
    assert bridge.toggle_in_progress

    wait_until(app, lambda: toggled and not bridge.toggle_in_progress)

    assert toggled == [{"success": True, "isMuted": True, "sourceName": YETI_SOURCE}]
    assert runner.muted is True
    assert bridge.getMicrophoneMuteStatus() == {"isMuted": True, "sourceName": YETI_SOURCE}


def test_second_toggle_is_refused_while_one_is_running(app):
    runner = SlowPactl(muted=False)
    bridge, toggled = make_bridge(runner)

    assert bridge.toggleMicrophoneMute() == {"accepted": True}
    assert bridge.toggleMicrophoneMute() == {"accepted": False}

    wait_until(app, lambda: toggled and not bridge.toggle_in_progress)

    assert len(toggled) == 1
    assert runner.muted is True
    assert bridge.toggleMicrophoneMute() == {"accepted": True}
    wait_until(app, lambda: len(toggled) == 2 and not bridge.toggle_in_progress)
    assert toggled[1]["isMuted"] is False


def test_toggle_failure_is_reported_to_the_page(app):
    bridge, toggled = make_bridge(FakeRunner({}))

    assert bridge.toggleMicrophoneMute() == {"accepted": True}

    wait_until(app, lambda: toggled and not bridge.toggle_in_progress)

    assert len(toggled) == 1
    result = toggled[0]
    assert result["success"] is False
    assert "pactl get-default-source" in result["error"]
    assert "isMuted" not in result
    assert bridge.getMicrophoneMuteStatus() == {"isMuted": False, "sourceName": ""}


def test_microphone_label_is_forwarded(app):
    bridge, _ = make_bridge(FakeRunner({}))
    labels = []
    bridge.microphone_changed.connect(labels.append)

    bridge.updateMicrophoneInfo("Yeti Stereo Microphone (046d:0a3c)")

    assert labels == ["Yeti Stereo Microphone (046d:0a3c)"]


def test_shutdown_waits_for_running_toggle(app):
    runner = SlowPactl(muted=False)
    bridge, _ = make_bridge(runner)
    bridge.toggleMicrophoneMute()

    bridge.shutdown()

    assert runner.muted is True
    wait_until(app, lambda: not bridge.toggle_in_progress)
