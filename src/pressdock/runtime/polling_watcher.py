from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pressdock.runtime.contracts import (
    WatcherEvent,
    WatcherState,
    transition_watcher_state,
)


@dataclass(frozen=True)
class WatcherPollResult:
    """Result from one watcher poll cycle."""

    should_reload: bool


class PreferencesWatcher:
    """Polls the preferences file and reports a save once the debounce window has passed."""

    def __init__(
        self,
        path: Path,
        interval_ms: int = 1000,
        debounce_ms: int = 300,
    ) -> None:
        self.path = path
        self.interval_ms = interval_ms
        self.debounce_ms = debounce_ms

        self.state: WatcherState = WatcherState.STOPPED
        self._fingerprint: Optional[tuple[int, int]] = None
        self._last_change_at: Optional[float] = None

    def start(self) -> None:
        """Start watcher lifecycle and record the file's current fingerprint."""
        self.state = transition_watcher_state(self.state, WatcherEvent.START)
        self._fingerprint = self._read_fingerprint()

    def stop(self) -> None:
        self.state = transition_watcher_state(self.state, WatcherEvent.STOP)

    def complete_reload(self) -> None:
        """Return to watching after the caller has reloaded the preferences."""
        if self.state != WatcherState.RELOADING:
            return
        self.state = transition_watcher_state(self.state, WatcherEvent.RELOAD_COMPLETE)

    def poll(self, now: float) -> WatcherPollResult:
        """Execute one poll cycle and return whether the debounce window is ready to reload."""
        if self.state == WatcherState.STOPPED:
            raise RuntimeError("PreferencesWatcher is not started. Call start() before poll().")

        if self.state == WatcherState.RELOADING:
            return WatcherPollResult(should_reload=False)

        fingerprint = self._read_fingerprint()
        if fingerprint != self._fingerprint:
            self._fingerprint = fingerprint
            self._last_change_at = now
            self._enter_debounce_window()
            return WatcherPollResult(should_reload=False)

        if self.state == WatcherState.DEBOUNCING and self._last_change_at is not None:
            if (now - self._last_change_at) >= self.debounce_ms / 1000.0:
                self.state = transition_watcher_state(self.state, WatcherEvent.DEBOUNCE_ELAPSED)
                self._last_change_at = None
                return WatcherPollResult(should_reload=True)

        return WatcherPollResult(should_reload=False)

    def _enter_debounce_window(self) -> None:
        self.state = transition_watcher_state(self.state, WatcherEvent.FILE_CHANGE)
        self.state = transition_watcher_state(self.state, WatcherEvent.DEBOUNCE_WINDOW_OPEN)

    def _read_fingerprint(self) -> Optional[tuple[int, int]]:
        # Size is included because some filesystems only keep coarse mtimes.
        try:
            stat = self.path.stat()
        except OSError:
            return None
        return stat.st_mtime_ns, stat.st_size
