"""
Default audio-input device discovery and monitoring.

There is no portable structured API for "the current default capture device
and its volume", so each platform probe shells out to the OS audio tools and
scrapes their text output.  Every public query on :class:`AudioMonitor`
degrades to a placeholder value instead of raising, with the exception of
:meth:`AudioMonitor.toggle_mute`, which is a user action and reports failure
to its caller.
"""
import logging
import os
import re
import subprocess
import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

logger = logging.getLogger("voicenotes_core.audio_monitor")

LEVEL_CHANGE_THRESHOLD = 0.05

DEFAULT_DEVICE_NAME = "System Audio Input"
UNKNOWN_DEVICE_NAME = "Unknown Input Device"
NO_DEVICE_NAME = "No Input Device"

_PERCENT_RE = re.compile(r"(\d+)%")
_DESCRIPTION_RE = re.compile(r'device\.description = "(.+)"')
_CARD_NAME_RE = re.compile(r'alsa\.card_name = "(.+)"')
_ARECORD_CARD_RE = re.compile(r"card \d+: (.+?) \[")
_OSASCRIPT_VOLUME_RE = re.compile(r"^\s*(\d+)\s*$")


class AudioCommandError(RuntimeError):
    """An OS audio utility is missing, failed, or returned nothing usable."""


def clamp_level(value: Any) -> float:
    """Coerce *value* to a float within [0, 1]; anything unparsable is 0."""
    try:
        level = float(value)
    except (TypeError, ValueError):
        return 0.0
    if level != level:  # NaN
        return 0.0
    return max(0.0, min(1.0, level))


def parse_percentage(text: str) -> float:
    """Return the first ``NN%`` in *text* as a fraction, or 0 if there is none."""
    match = _PERCENT_RE.search(text or "")
    if not match:
        return 0.0
    return clamp_level(int(match.group(1)) / 100)


@dataclass(frozen=True)
class AudioDeviceState:
    """Display name and volume fraction of the default input device."""

    name: str = DEFAULT_DEVICE_NAME
    level: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "level", clamp_level(self.level))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "level": self.level}


@dataclass(frozen=True)
class MuteState:
    is_muted: bool = False
    source_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"isMuted": self.is_muted, "sourceName": self.source_name}


@dataclass(frozen=True)
class MuteToggleResult:
    success: bool
    is_muted: bool = False
    source_name: str = ""
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "MuteToggleResult":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error or "Unknown error"}
        return {"success": True, "isMuted": self.is_muted, "sourceName": self.source_name}


PLACEHOLDER_STATE = AudioDeviceState(DEFAULT_DEVICE_NAME, 0.0)


def has_changed(previous: Optional[AudioDeviceState], current: AudioDeviceState,
                threshold: float = LEVEL_CHANGE_THRESHOLD) -> bool:
    """True when *current* is worth reporting relative to the last emitted state."""
    if previous is None:
        return True
    if previous.name != current.name:
        return True
    return abs(current.level - previous.level) > threshold


# ---------------------------------------------------------------------------
# Command execution
# ---------------------------------------------------------------------------

CommandRunner = Callable[[Sequence[str]], str]


def run_command(args: Sequence[str]) -> str:
    """Run an audio utility and return its stdout.

    Raises :class:`AudioCommandError` when the executable is missing or exits
    non-zero.  No timeout is applied; callers run on the monitor thread or
    a worker thread, never on the GUI thread.
    """
    command = " ".join(args)
    try:
        result = subprocess.run(
            list(args),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            # Tool output is scraped for English labels such as "Mute:"
            env={**os.environ, "LC_ALL": "C"},
        )
    except OSError as e:
        raise AudioCommandError(f"{command}: {e}") from e
    if result.returncode != 0:
        raise AudioCommandError(
            f"{command} exited with code {result.returncode}: {result.stderr.strip()}"
        )
    return result.stdout


# ---------------------------------------------------------------------------
# Output parsers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PulseSource:
    """One ``Source #N`` block of ``pactl list sources``."""

    index: str
    name: str
    description: str
    level: float
    is_muted: bool


def parse_pactl_sources(text: str) -> List[PulseSource]:
    """Split ``pactl list sources`` output into :class:`PulseSource` records.

    The description comes from whichever of ``device.description`` or
    ``alsa.card_name`` appears first in the block; the level from the first
    percentage on the ``Volume:`` line.
    """
    sources: List[PulseSource] = []
    for section in text.split("Source #")[1:]:
        lines = section.splitlines()
        if not lines:
            continue
        index = lines[0].strip()
        name = ""
        description: Optional[str] = None
        volume_line: Optional[str] = None
        is_muted = False
        for line in lines[1:]:
            stripped = line.strip()
            if stripped.startswith("Name:") and not name:
                name = stripped[len("Name:"):].strip()
            elif stripped.startswith("Mute:"):
                is_muted = stripped[len("Mute:"):].strip().lower() == "yes"
            elif stripped.startswith("Volume:") and volume_line is None:
                volume_line = stripped
            elif description is None:
                match = _DESCRIPTION_RE.search(stripped) or _CARD_NAME_RE.search(stripped)
                if match:
                    description = match.group(1)
        sources.append(PulseSource(
            index=index,
            name=name,
            description=description or UNKNOWN_DEVICE_NAME,
            level=parse_percentage(volume_line or ""),
            is_muted=is_muted,
        ))
    return sources


def pick_input_source_id(short_listing: str) -> Optional[str]:
    """Return the id of the first real capture source in ``pactl list short sources``."""
    for line in short_listing.splitlines():
        if not line.strip() or ".monitor" in line:
            continue
        if "alsa_input" in line or "input" in line:
            return line.split("\t")[0].strip()
    return None


def parse_arecord_card_name(text: str) -> Optional[str]:
    """Return the first card name listed by ``arecord -l``."""
    for line in text.splitlines():
        if "card" in line and "device" in line:
            match = _ARECORD_CARD_RE.search(line)
            if match:
                return match.group(1).strip()
    return None


def parse_system_profiler_default_input(text: str) -> Optional[str]:
    """Return the device marked ``Default Input Device: Yes`` by system_profiler."""
    current_device: Optional[str] = None
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.endswith(":") and ": " not in stripped:
            current_device = stripped[:-1]
        elif stripped == "Default Input Device: Yes" and current_device:
            return current_device
    return None


# ---------------------------------------------------------------------------
# Platform probes
# ---------------------------------------------------------------------------

class AudioDeviceProbe(ABC):
    """Answers "what is the default input device right now?" for one platform.

    :meth:`probe` is the only required method.  Mute support is optional; the
    base implementations raise :class:`AudioCommandError`.
    """

    name = "generic"

    def __init__(self, runner: CommandRunner = run_command):
        self._run = runner

    @abstractmethod
    def probe(self) -> AudioDeviceState:
        """Return the current default input device state."""

    def default_source(self) -> str:
        raise AudioCommandError(f"{self.name} cannot report the default source")

    def read_mute(self, source_name: str) -> bool:
        raise AudioCommandError(f"Mute status is not supported by {self.name}")

    def toggle_source_mute(self, source_name: str) -> None:
        raise AudioCommandError(f"Mute control is not supported by {self.name}")


class AlsaProbe(AudioDeviceProbe):
    """Lowest-level fallback: names the first capture card, level unknown."""

    name = "alsa"

    def probe(self) -> AudioDeviceState:
        try:
            output = self._run(["arecord", "-l"])
        except AudioCommandError as e:
            logger.debug(f"AlsaProbe: arecord unavailable: {e}")
            return PLACEHOLDER_STATE
        return AudioDeviceState(parse_arecord_card_name(output) or DEFAULT_DEVICE_NAME, 0.0)


class PulseAudioProbe(AudioDeviceProbe):
    """PulseAudio / PipeWire-pulse probe built on ``pactl``.

    Fallback chain: default source -> first plausible input source -> ALSA.
    """

    name = "pulseaudio"

    def __init__(self, runner: CommandRunner = run_command,
                 fallback: Optional[AudioDeviceProbe] = None):
        super().__init__(runner)
        self._fallback = fallback if fallback is not None else AlsaProbe(runner)
        self._last_logged_source: Optional[str] = None

    def default_source(self) -> str:
        source_name = self._run(["pactl", "get-default-source"]).strip()
        if not source_name:
            raise AudioCommandError("pactl returned an empty default source")
        if source_name != self._last_logged_source:
            logger.info(f"Default source detected: {source_name}")
            self._last_logged_source = source_name
        return source_name

    def list_sources(self) -> List[PulseSource]:
        return parse_pactl_sources(self._run(["pactl", "list", "sources"]))

    def probe(self) -> AudioDeviceState:
        try:
            source_name = self.default_source()
        except AudioCommandError as e:
            logger.debug(f"PulseAudioProbe: could not get default source ({e}), trying list method")
            return self._probe_first_available()
        return self._describe(lambda source: source.name == source_name)

    def read_mute(self, source_name: str) -> bool:
        for source in self.list_sources():
            if source.name == source_name:
                return source.is_muted
        return False

    def toggle_source_mute(self, source_name: str) -> None:
        self._run(["pactl", "set-source-mute", source_name, "toggle"])

    def _probe_first_available(self) -> AudioDeviceState:
        try:
            listing = self._run(["pactl", "list", "short", "sources"])
        except AudioCommandError as e:
            logger.debug(f"PulseAudioProbe: could not list sources ({e}), trying {self._fallback.name}")
            return self._fallback.probe()
        source_id = pick_input_source_id(listing)
        if source_id is None:
            return AudioDeviceState(NO_DEVICE_NAME, 0.0)
        return self._describe(lambda source: source.index == source_id)

    def _describe(self, predicate: Callable[[PulseSource], bool]) -> AudioDeviceState:
        try:
            sources = self.list_sources()
        except AudioCommandError as e:
            logger.debug(f"PulseAudioProbe: could not read source details: {e}")
            return AudioDeviceState(UNKNOWN_DEVICE_NAME, 0.0)
        for source in sources:
            if predicate(source):
                return AudioDeviceState(source.description, source.level)
        return AudioDeviceState(UNKNOWN_DEVICE_NAME, 0.0)


class MacOSProbe(AudioDeviceProbe):
    """CoreAudio probe via ``system_profiler`` (device name) and ``osascript`` (input volume)."""

    name = "macos"

    def default_source(self) -> str:
        output = self._run(["system_profiler", "SPAudioDataType"])
        device = parse_system_profiler_default_input(output)
        if not device:
            raise AudioCommandError("system_profiler reported no default input device")
        return device

    def probe(self) -> AudioDeviceState:
        try:
            device = self.default_source()
        except AudioCommandError as e:
            logger.debug(f"MacOSProbe: {e}")
            return PLACEHOLDER_STATE
        return AudioDeviceState(device, self._input_volume())

    def _input_volume(self) -> float:
        try:
            output = self._run(["osascript", "-e", "input volume of (get volume settings)"])
        except AudioCommandError as e:
            logger.debug(f"MacOSProbe: could not read input volume: {e}")
            return 0.0
        match = _OSASCRIPT_VOLUME_RE.match(output)
        return clamp_level(int(match.group(1)) / 100) if match else 0.0


def default_probe(runner: CommandRunner = run_command) -> AudioDeviceProbe:
    """Pick the probe for the running platform."""
    if sys.platform == "darwin":
        return MacOSProbe(runner)
    return PulseAudioProbe(runner)


# ---------------------------------------------------------------------------
# Monitor
# ---------------------------------------------------------------------------

DeviceCallback = Callable[[AudioDeviceState], None]


class AudioMonitor:
    """Polls an :class:`AudioDeviceProbe` and reports meaningful changes.

    Subscribers are called on the polling thread; :attr:`latest` gives
    pull-based access to the last reported state.
    """

    def __init__(self, probe: Optional[AudioDeviceProbe] = None):
        self.probe = probe if probe is not None else default_probe()
        self._latest: Optional[AudioDeviceState] = None
        self._mute: Optional[MuteState] = None
        self._subscribers: List[DeviceCallback] = []
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def latest(self) -> Optional[AudioDeviceState]:
        with self._lock:
            return self._latest

    @property
    def mute_status(self) -> Optional[MuteState]:
        """Mute state read on the most recent poll or toggle; None before the first one."""
        with self._lock:
            return self._mute

    @property
    def is_monitoring(self) -> bool:
        return self._thread is not None

    def subscribe(self, callback: DeviceCallback) -> Callable[[], None]:
        """Register *callback* for change notifications; returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def get_current_device(self) -> AudioDeviceState:
        try:
            return self.probe.probe()
        except Exception as e:
            logger.warning(f"AudioMonitor: {self.probe.name} probe failed: {e}")
            return PLACEHOLDER_STATE

    def poll(self) -> Optional[AudioDeviceState]:
        """Probe once; notify subscribers and return the state if it changed.

        The mute flag is refreshed on every call so that :attr:`mute_status`
        stays current even when the device itself does not change.
        """
        state = self.get_current_device()
        self.get_mute_status()
        with self._lock:
            if not has_changed(self._latest, state):
                return None
            self._latest = state
            subscribers = list(self._subscribers)
        logger.debug(f"AudioMonitor: device update - {state.name} ({round(state.level * 100)}%)")
        for callback in subscribers:
            try:
                callback(state)
            except Exception:
                logger.exception("AudioMonitor: subscriber raised")
        return state

    def start_monitoring(self, interval_ms: int = 1000) -> None:
        """Start polling on a daemon thread.  Calling again while running is a no-op."""
        if self._thread is not None:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(max(interval_ms, 1) / 1000.0, self._stop_event),
            name="AudioMonitor",
            daemon=True,
        )
        self._thread.start()

    def stop_monitoring(self) -> None:
        """Stop polling.  Safe to call when not running."""
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread = None

    def _run_loop(self, interval: float, stop_event: threading.Event) -> None:
        logger.info(f"Audio monitoring started (interval={interval:.1f}s, probe={self.probe.name})")
        while not stop_event.is_set():
            try:
                self.poll()
            except Exception:
                logger.exception("AudioMonitor: error monitoring audio")
            if stop_event.wait(interval):
                break
        logger.info("Audio monitoring stopped")

    def get_mute_status(self) -> MuteState:
        """Mute flag of the default source; unknown is reported as not muted.

        Runs the audio tools synchronously and updates :attr:`mute_status`.
        """
        status = self._read_mute_status()
        with self._lock:
            self._mute = status
        return status

    def _read_mute_status(self) -> MuteState:
        try:
            source_name = self.probe.default_source()
        except Exception as e:
            logger.debug(f"AudioMonitor: mute status unavailable: {e}")
            return MuteState(False, "")
        try:
            return MuteState(self.probe.read_mute(source_name), source_name)
        except Exception as e:
            logger.debug(f"AudioMonitor: could not read mute flag for {source_name}: {e}")
            return MuteState(False, source_name)

    def toggle_mute(self) -> MuteToggleResult:
        """Toggle mute on the default source and confirm the new value.

        Raises :class:`AudioCommandError` if the source lookup or the toggle
        command fails.
        """
        source_name = self.probe.default_source()
        self.probe.toggle_source_mute(source_name)
        status = self.get_mute_status()
        logger.info(f"Microphone {'muted' if status.is_muted else 'unmuted'}: {source_name}")
        return MuteToggleResult(success=True, is_muted=status.is_muted, source_name=source_name)
