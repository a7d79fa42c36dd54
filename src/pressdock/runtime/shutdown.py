from __future__ import annotations

import atexit
from typing import Optional

from pressdock.cli.formatter import OutputFormatter
from pressdock.core.context import SessionContext
from pressdock.runtime.commands import compose_command
from pressdock.runtime.process import ProcessRunner


class ShutdownHandler:
    """Stops the containers when pressdock exits, without waiting for them."""

    def __init__(self, context: SessionContext, process_runner: Optional[ProcessRunner] = None) -> None:
        self.context = context
        self.process_runner = process_runner or ProcessRunner()
        self._registered = False

    def shutdown(self) -> bool:
        OutputFormatter.log("Shutdown, stopping containers", severity="debug")
        return self.process_runner.spawn_detached(
            compose_command("down"),
            cwd=self.context.tools_dir,
            env=self.context.subprocess_env(),
        )

    def register(self) -> None:
        if self._registered:
            return
        atexit.register(self.shutdown)
        self._registered = True

    def unregister(self) -> None:
        if not self._registered:
            return
        atexit.unregister(self.shutdown)
        self._registered = False
