from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple

from pressdock.cli.formatter import OutputFormatter
from pressdock.core.context import SessionContext
from pressdock.core.models import StackConfig, port_preference
from pressdock.runtime.commands import CommandRunner

# (section, preference) -> StackConfig field the preference feeds.
RELEVANT_PREFERENCES: Dict[Tuple[str, str], str] = {
    ("basic", "wordpress-folder"): "wordpress_folder",
    ("basic", "gutenberg-folder"): "gutenberg_folder",
    ("site", "port"): "port",
}


def preference_changed(applied: StackConfig, section: str, preference: str, value: Any) -> bool:
    """Whether a saved preference differs from what the running stack was started with."""
    field = RELEVANT_PREFERENCES.get((section, preference))
    if field is None:
        return False

    current = getattr(applied, field)
    if field == "port":
        return port_preference(value) != current

    normalized = value if value not in ("", None) else None
    return normalized != current


class ConfigChangeReactor:
    """Tears the stack down and restarts it when a preference it depends on is saved."""

    def __init__(
        self,
        context: SessionContext,
        runner: CommandRunner,
        restart: Callable[[], object],
    ) -> None:
        self.context = context
        self.runner = runner
        self.restart = restart

    def notify(self, section: str, preference: str, value: Any) -> bool:
        """Handle one saved preference. Returns whether a restart was triggered."""
        self.context.set_preference(section, preference, value)

        if not preference_changed(self.context.applied, section, preference, value):
            return False

        self._teardown_and_restart()
        return True

    def notify_many(self, changes: list[tuple[str, str, Any]]) -> bool:
        """Apply a batch of saved preferences and restart at most once."""
        relevant = False
        for section, preference, value in changes:
            self.context.set_preference(section, preference, value)
            if preference_changed(self.context.applied, section, preference, value):
                relevant = True

        if relevant:
            self._teardown_and_restart()
        return relevant

    def _teardown_and_restart(self) -> None:
        OutputFormatter.log("Preferences updated", severity="debug")

        if self.context.compose_file.exists():
            OutputFormatter.log("Stopping containers", severity="debug")
            self.runner.teardown()

        self.restart()
