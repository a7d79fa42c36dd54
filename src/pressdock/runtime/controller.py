from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from pressdock.cli.formatter import OutputFormatter
from pressdock.config.loader import diff_preferences, load_config
from pressdock.core.context import SessionContext
from pressdock.core.status import StatusListener
from pressdock.runtime.polling_watcher import PreferencesWatcher
from pressdock.runtime.process import ProcessRunner
from pressdock.runtime.reactor import ConfigChangeReactor
from pressdock.runtime.retry import RetryPolicy
from pressdock.runtime.shutdown import ShutdownHandler
from pressdock.runtime.supervisor import StackSupervisor
from pressdock.utils.diagnostics import ConfigLoadError

PREFERENCE_SECTIONS = ("basic", "site")


class PressdockRuntimeController:
    """Host-facing wiring of supervisor, reactor, shutdown handler and preferences watcher."""

    def __init__(
        self,
        config_path: Path,
        process_runner: Optional[ProcessRunner] = None,
        retry_policy: Optional[RetryPolicy] = None,
        on_status: Optional[StatusListener] = None,
        background: bool = True,
    ) -> None:
        self.config_path = config_path
        self.background = background

        config_data = load_config(self.config_path)
        self.context = SessionContext(config_dict=config_data)
        OutputFormatter.configure(self.context.settings.log_level)
        if on_status is not None:
            self.context.status.subscribe(on_status)

        self.process_runner = process_runner or ProcessRunner()
        self.supervisor = StackSupervisor(
            self.context,
            process_runner=self.process_runner,
            retry_policy=retry_policy,
        )
        self.reactor = ConfigChangeReactor(
            self.context,
            self.supervisor.runner,
            restart=lambda: self.supervisor.restart(background=self.background),
        )
        self.shutdown_handler = ShutdownHandler(self.context, self.process_runner)

        self._loaded_preferences: Dict[str, Any] = self._preference_sections(config_data)
        self.preferences_watcher: Optional[PreferencesWatcher] = None
        self.preferences_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        """Probe the host once, then start the first supervisor run."""
        self.supervisor.detect_environment()
        self.supervisor.start(background=self.background)

    def notify(self, section: str, preference: str, value: Any) -> bool:
        """Entry point for hosts that learn about saved preferences themselves."""
        return self.reactor.notify(section, preference, value)

    def reload_preferences(self) -> bool:
        """
        Re-read the preferences file and forward every changed value to the reactor.

        An unparseable file leaves the running stack and the last good preferences alone.
        """
        try:
            loaded = load_config(self.config_path)
        except ConfigLoadError as e:
            OutputFormatter.log(f"{e}. Keeping the current preferences.", severity="warning")
            return False

        current = self._preference_sections(loaded)
        changes = diff_preferences(self._loaded_preferences, current)
        self._loaded_preferences = current
        if not changes:
            return False
        return self.reactor.notify_many(changes)

    def start_preferences_watch(self, background: bool = True) -> None:
        if self.preferences_watcher is not None:
            return

        self.preferences_watcher = PreferencesWatcher(
            path=self.config_path,
            interval_ms=self.context.settings.poll_interval_ms,
        )
        self.preferences_watcher.start()
        self._stop_event.clear()

        if background:
            self.preferences_thread = threading.Thread(target=self._watch_loop, daemon=True)
            self.preferences_thread.start()

    def stop_preferences_watch(self) -> None:
        self._stop_event.set()

        if self.preferences_thread is not None and self.preferences_thread.is_alive():
            self.preferences_thread.join(timeout=1)

        if self.preferences_watcher is not None:
            self.preferences_watcher.stop()

        self.preferences_thread = None
        self.preferences_watcher = None

    def poll_once(self, now: float) -> bool:
        """Run a single watcher poll cycle; returns whether a restart was triggered."""
        if self.preferences_watcher is None:
            return False

        poll_result = self.preferences_watcher.poll(now=now)
        if not poll_result.should_reload:
            return False

        try:
            return self.reload_preferences()
        finally:
            self.preferences_watcher.complete_reload()

    def stop(self) -> None:
        """Stop watching and abandon the current run. Containers are left to the shutdown handler."""
        self.stop_preferences_watch()
        self.supervisor.stop()

    def _watch_loop(self) -> None:
        if self.preferences_watcher is None:
            return

        interval_seconds = max(self.preferences_watcher.interval_ms / 1000.0, 0.05)
        while not self._stop_event.is_set():
            self.poll_once(now=time.monotonic())
            self._stop_event.wait(interval_seconds)

    @staticmethod
    def _preference_sections(config_data: Dict[str, Any]) -> Dict[str, Any]:
        return {section: dict(config_data.get(section) or {}) for section in PREFERENCE_SECTIONS}
