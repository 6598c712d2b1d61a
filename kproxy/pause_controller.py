"""Pausing, stopping and resuming of request handling for a service."""

from __future__ import annotations

import enum
import threading

DEFAULT_STOP_MESSAGE = ""


class PauseState(enum.IntEnum):
    RUNNING = 0
    PAUSED = 1
    STOPPED = 2

    def __str__(self) -> str:
        return self.name.lower()


class PauseWaitAction(enum.IntEnum):
    PROCEED = 0
    TIMED_OUT = 1
    STOPPED = 2


class PauseController:
    """Lets requests proceed, wait while paused, or fail while stopped."""

    def __init__(self) -> None:
        self._state = PauseState.RUNNING
        self._stop_message = ""
        self._fail_after = 0.0
        self._lock = threading.Lock()
        self._released = threading.Event()

    @property
    def state(self) -> PauseState:
        with self._lock:
            return self._state

    @property
    def stop_message(self) -> str:
        with self._lock:
            return self._stop_message

    @property
    def fail_after(self) -> float:
        with self._lock:
            return self._fail_after

    def to_dict(self) -> dict:
        """Serialise state; ``fail_after`` is in nanoseconds."""
        with self._lock:
            return {
                "state": int(self._state),
                "stop_message": self._stop_message,
                "fail_after": int(round(self._fail_after * 1e9)),
            }

    @classmethod
    def from_dict(cls, data: dict) -> "PauseController":
        controller = cls()
        state = PauseState(data.get("state", 0))
        message = data.get("stop_message", "")
        fail_after = data.get("fail_after", 0) / 1e9
        controller._fail_after = fail_after
        if state is PauseState.RUNNING:
            controller.resume()
        elif state is PauseState.PAUSED:
            controller.pause(fail_after)
        else:
            controller.stop(message)
        return controller

    def stop(self, message: str) -> None:
        self._set_state(PauseState.STOPPED, message)

    def pause(self, fail_after: float) -> None:
        """Pause; waiting requests time out after ``fail_after`` seconds."""
        with self._lock:
            if self._state is not PauseState.PAUSED:
                self._released = threading.Event()
            self._state = PauseState.PAUSED
            self._stop_message = ""
            self._fail_after = fail_after

    def resume(self) -> None:
        self._set_state(PauseState.RUNNING, "")

    def wait(self) -> tuple[PauseWaitAction, str]:
        with self._lock:
            state, message = self._state, self._stop_message
            released, timeout = self._released, self._fail_after
        if state is PauseState.RUNNING:
            return PauseWaitAction.PROCEED, ""
        if state is PauseState.STOPPED:
            return PauseWaitAction.STOPPED, message
        if not released.wait(timeout):
            return PauseWaitAction.TIMED_OUT, ""
        with self._lock:
            if self._state is PauseState.STOPPED:
                return PauseWaitAction.STOPPED, self._stop_message
        return PauseWaitAction.PROCEED, ""

    def _set_state(self, new_state: PauseState, message: str) -> None:
        with self._lock:
            if self._state is not new_state and self._state is PauseState.PAUSED:
                self._released.set()
            self._stop_message = message
            self._state = new_state