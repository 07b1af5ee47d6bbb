"""
Recording state machine driven by the hosted page's own controls.

The host never infers whether the page is recording; it asks the page to
click a control and moves to the new state only when the page reports
``{"success": true}``.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger("voicenotes_core.recording_state")


class RecordingState(Enum):
    STOPPED = "stopped"
    RECORDING = "recording"
    PAUSED = "paused"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class _Transition:
    page_function: str
    target: RecordingState
    success_message: str
    failure_message: str


_TRANSITIONS = {
    "record": _Transition(
        "startRecording", RecordingState.RECORDING,
        "Recording started",
        "Could not start recording. Please ensure Voice Notes is loaded.",
    ),
    "legacy_record": _Transition(
        "findAndClickRecordButton", RecordingState.RECORDING,
        "Recording started",
        "Could not start recording. Please ensure Voice Notes is loaded.",
    ),
    "pause": _Transition(
        "pauseRecording", RecordingState.PAUSED,
        "Recording paused",
        "Could not pause recording.",
    ),
    "stop": _Transition(
        "stopRecording", RecordingState.STOPPED,
        "Recording stopped",
        "Could not stop recording.",
    ),
}

# (page function name, result callback) -> None; the callback may run later
PageInvoker = Callable[[str, Callable[[Any], None]], None]
# (message, is_error) -> None
Notifier = Callable[[str, bool], None]


class HasRecordingState(Protocol):
    recording_state: RecordingState


class RecordingCoordinator:
    """Three-state machine: stopped -> recording -> paused -> recording -> stopped.

    ``holder.recording_state`` is the single source of truth and is only
    written from the result callback of a page invocation.
    """

    def __init__(self, holder: HasRecordingState, invoke_page: PageInvoker,
                 notify: Notifier,
                 on_state_changed: Optional[Callable[[RecordingState], None]] = None):
        self._holder = holder
        self._invoke_page = invoke_page
        self._notify = notify
        self._on_state_changed = on_state_changed

    @property
    def state(self) -> RecordingState:
        return self._holder.recording_state

    def start(self) -> bool:
        """Ask the page to start (or resume) recording.  Returns True if a request was sent."""
        if self.state is RecordingState.RECORDING:
            return False
        return self._request("record")

    def pause(self) -> bool:
        if self.state is not RecordingState.RECORDING:
            return False
        return self._request("pause")

    def stop(self) -> bool:
        if self.state is RecordingState.STOPPED:
            return False
        return self._request("stop")

    def toggle(self) -> bool:
        """Legacy single-button behaviour: start when stopped, otherwise stop."""
        if self.state is RecordingState.STOPPED:
            return self._request("legacy_record")
        return self.stop()

    def _request(self, action: str) -> bool:
        transition = _TRANSITIONS[action]
        logger.info(f"Requesting '{action}' from page (state={self.state.value})")
        self._invoke_page(
            transition.page_function,
            lambda result: self._on_page_result(action, result),
        )
        return True

    def _on_page_result(self, action: str, result: Any) -> None:
        transition = _TRANSITIONS[action]
        if isinstance(result, dict) and result.get("success") is True:
            self._holder.recording_state = transition.target
            logger.info(f"Recording state -> {transition.target.value}")
            if self._on_state_changed is not None:
                self._on_state_changed(transition.target)
            self._notify(transition.success_message, False)
            return

        error = result.get("error") if isinstance(result, dict) else None
        logger.warning(f"Page could not {action.replace('_', ' ')}: {error or result!r}")
        self._notify(transition.failure_message, True)
