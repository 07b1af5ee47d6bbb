"""Shared fakes for the OS audio utilities."""
from typing import Dict, List, Sequence, Tuple, Union

import pytest

from audio_monitor import AudioCommandError

PACTL_SOURCES = """\
Source #0
\tState: SUSPENDED
\tName: alsa_output.pci-0000_00_1f.3.analog-stereo.monitor
\tDescription: Monitor of Built-in Audio Analog Stereo
\tMute: no
\tVolume: front-left: 65536 / 100% / 0.00 dB,   front-right: 65536 / 100% / 0.00 dB
\tBase Volume: 65536 / 100% / 0.00 dB
\tProperties:
\t\tdevice.description = "Monitor of Built-in Audio Analog Stereo"
Source #1
\tState: RUNNING
\tName: alsa_input.usb-Blue_Microphones_Yeti-00.analog-stereo
\tDescription: Yeti Stereo Microphone Analog Stereo
\tMute: no
\tVolume: front-left: 41943 / 64% / -11.63 dB,   front-right: 41943 / 64% / -11.63 dB
\tBase Volume: 65536 / 100% / 0.00 dB
\tProperties:
\t\tdevice.description = "Yeti Stereo Microphone"
\t\talsa.card_name = "Yeti Stereo Microphone USB"
"""

PACTL_SHORT_SOURCES = (
    "0\talsa_output.pci-0000_00_1f.3.analog-stereo.monitor\tmodule-alsa-card.c\ts16le 2ch 44100Hz\tSUSPENDED\n"
    "1\talsa_input.usb-Blue_Microphones_Yeti-00.analog-stereo\tmodule-alsa-card.c\ts16le 2ch 48000Hz\tRUNNING\n"
)

YETI_SOURCE = "alsa_input.usb-Blue_Microphones_Yeti-00.analog-stereo"

Response = Union[str, Exception]


class FakeRunner:
    """Stands in for ``run_command``: canned stdout per argument tuple.

    Commands without a canned response fail the way a missing executable does.
    """

    def __init__(self, responses: Dict[Tuple[str, ...], Response]):
        self.responses = dict(responses)
        self.calls: List[Tuple[str, ...]] = []

    def __call__(self, args: Sequence[str]) -> str:
        key = tuple(args)
        self.calls.append(key)
        response = self.responses.get(key)
        if response is None:
            raise AudioCommandError(f"{' '.join(args)}: command not found")
        if isinstance(response, Exception):
            raise response
        return response


class FakePactl(FakeRunner):
    """A ``pactl`` that remembers the mute flag of the default source."""

    def __init__(self, muted: bool = False):
        super().__init__({("pactl", "get-default-source"): YETI_SOURCE + "\n"})
        self.muted = muted

    def __call__(self, args: Sequence[str]) -> str:
        key = tuple(args)
        if key == ("pactl", "set-source-mute", YETI_SOURCE, "toggle"):
            self.calls.append(key)
            self.muted = not self.muted
            return ""
        if key == ("pactl", "list", "sources"):
            self.calls.append(key)
            return PACTL_SOURCES.replace(
                "Mute: no\n\tVolume: front-left: 41943",
                f"Mute: {'yes' if self.muted else 'no'}\n\tVolume: front-left: 41943",
            )
        return super().__call__(args)


@pytest.fixture
def pulse_runner() -> FakeRunner:
    return FakeRunner({
        ("pactl", "get-default-source"): YETI_SOURCE + "\n",
        ("pactl", "list", "sources"): PACTL_SOURCES,
        ("pactl", "list", "short", "sources"): PACTL_SHORT_SOURCES,
    })
