from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from enum import Enum


class SupervisorState(str, Enum):
    """Lifecycle states of one supervisor run."""

    IDLE = "idle"
    VIRTUALIZATION_CHECK = "virtualization_check"
    WAIT_FOR_ENGINE = "wait_for_engine"
    STARTING = "starting"
    WAIT_FOR_HEALTH = "wait_for_health"
    INSTALLING = "installing"
    READY = "ready"
    ABORTED = "aborted"


class SupervisorEvent(str, Enum):
    """Events that drive supervisor state transitions."""

    MACHINE_REQUIRED = "machine_required"
    CHECK_ENGINE = "check_engine"
    ENGINE_AVAILABLE = "engine_available"
    CONFIG_MISSING = "config_missing"
    STACK_STARTED = "stack_started"
    DATABASE_HEALTHY = "database_healthy"
    INSTALL_COMPLETE = "install_complete"
    RESET = "reset"


_TRANSITIONS = {
    SupervisorState.IDLE: {
        SupervisorEvent.MACHINE_REQUIRED: SupervisorState.VIRTUALIZATION_CHECK,
        SupervisorEvent.CHECK_ENGINE: SupervisorState.WAIT_FOR_ENGINE,
    },
    SupervisorState.VIRTUALIZATION_CHECK: {
        SupervisorEvent.CHECK_ENGINE: SupervisorState.WAIT_FOR_ENGINE,
    },
    SupervisorState.WAIT_FOR_ENGINE: {
        SupervisorEvent.ENGINE_AVAILABLE: SupervisorState.STARTING,
        SupervisorEvent.CONFIG_MISSING: SupervisorState.ABORTED,
    },
    SupervisorState.STARTING: {
        SupervisorEvent.STACK_STARTED: SupervisorState.WAIT_FOR_HEALTH,
    },
    SupervisorState.WAIT_FOR_HEALTH: {
        SupervisorEvent.DATABASE_HEALTHY: SupervisorState.INSTALLING,
    },
    SupervisorState.INSTALLING: {
        SupervisorEvent.INSTALL_COMPLETE: SupervisorState.READY,
    },
    SupervisorState.READY: {},
    SupervisorState.ABORTED: {},
}


def transition_supervisor_state(current: SupervisorState, event: SupervisorEvent) -> SupervisorState:
    """Compute the next supervisor state for a given event.

    RESET returns any state to IDLE. Invalid transitions raise ValueError.
    """

    if event == SupervisorEvent.RESET:
        return SupervisorState.IDLE

    allowed = _TRANSITIONS.get(current)
    if allowed is None:
        raise ValueError(f"Unknown supervisor state: {current}")

    if event not in allowed:
        raise ValueError(f"Invalid supervisor transition: {current} -> {event}")

    return allowed[event]


@dataclass(frozen=True)
class RunToken:
    """Identifies one supervisor run."""

    generation: int


class RunTokenSource:
    """Hands out run tokens; only the most recently issued token is current."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._current: RunToken | None = None
        self._lock = threading.Lock()

    def issue(self) -> RunToken:
        with self._lock:
            token = RunToken(generation=next(self._counter))
            self._current = token
            return token

    def revoke(self) -> None:
        with self._lock:
            self._current = None

    def is_current(self, token: RunToken) -> bool:
        with self._lock:
            return self._current == token


class WatcherState(str, Enum):
    """States of the preferences file watcher."""

    STOPPED = "stopped"
    WATCHING = "watching"
    CHANGE_DETECTED = "change_detected"
    DEBOUNCING = "debouncing"
    RELOADING = "reloading"


class WatcherEvent(str, Enum):
    """Events that drive watcher state transitions."""

    START = "start"
    FILE_CHANGE = "file_change"
    DEBOUNCE_WINDOW_OPEN = "debounce_window_open"
    DEBOUNCE_ELAPSED = "debounce_elapsed"
    RELOAD_COMPLETE = "reload_complete"
    STOP = "stop"


def transition_watcher_state(current: WatcherState, event: WatcherEvent) -> WatcherState:
    """Compute the next watcher state for a given event.

    Invalid transitions raise ValueError.
    """

    if event == WatcherEvent.STOP:
        return WatcherState.STOPPED

    if current == WatcherState.STOPPED:
        if event == WatcherEvent.START:
            return WatcherState.WATCHING
        raise ValueError(f"Invalid watcher transition: {current} -> {event}")

    if current == WatcherState.WATCHING:
        if event == WatcherEvent.FILE_CHANGE:
            return WatcherState.CHANGE_DETECTED
        raise ValueError(f"Invalid watcher transition: {current} -> {event}")

    if current == WatcherState.CHANGE_DETECTED:
        if event == WatcherEvent.DEBOUNCE_WINDOW_OPEN:
            return WatcherState.DEBOUNCING
        raise ValueError(f"Invalid watcher transition: {current} -> {event}")

    if current == WatcherState.DEBOUNCING:
        if event == WatcherEvent.FILE_CHANGE:
            return WatcherState.CHANGE_DETECTED
        if event == WatcherEvent.DEBOUNCE_ELAPSED:
            return WatcherState.RELOADING
        raise ValueError(f"Invalid watcher transition: {current} -> {event}")

    if current == WatcherState.RELOADING:
        if event == WatcherEvent.RELOAD_COMPLETE:
            return WatcherState.WATCHING
        raise ValueError(f"Invalid watcher transition: {current} -> {event}")

    raise ValueError(f"Unknown watcher state: {current}")
