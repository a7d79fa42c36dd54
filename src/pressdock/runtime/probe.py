from __future__ import annotations

import sys
from typing import Optional

from pressdock.cli.formatter import OutputFormatter
from pressdock.core.context import SessionContext
from pressdock.runtime.parsers import SystemInfo, SystemInfoParser
from pressdock.runtime.process import ProcessRunner
from pressdock.utils.diagnostics import ParseError

MIN_MAJOR_VERSION = 10
MIN_BUILD_NUMBER = 14393
REQUIRED_EDITION = "Pro"


def needs_machine_fallback(info: SystemInfo) -> bool:
    """Apply Docker for Windows' requirements to a parsed system record."""
    if REQUIRED_EDITION not in info.os_name:
        OutputFormatter.log("Not running Windows Pro", severity="debug")
        return True

    if info.major_version < MIN_MAJOR_VERSION:
        OutputFormatter.log("Not running Windows 10", severity="debug")
        return True

    if info.build_number < MIN_BUILD_NUMBER:
        OutputFormatter.log(f"Not running build {MIN_BUILD_NUMBER} or later", severity="debug")
        return True

    missing = info.missing_hyperv_requirements()
    for requirement in missing:
        OutputFormatter.log(f"Don't have Hyper-V requirement \"{requirement}\" available", severity="debug")
    return bool(missing)


class EnvironmentProber:
    """Decides whether Docker has to run inside docker-machine on this host."""

    def __init__(
        self,
        context: SessionContext,
        process_runner: Optional[ProcessRunner] = None,
        platform: Optional[str] = None,
    ) -> None:
        self.context = context
        self.process_runner = process_runner or ProcessRunner()
        self.platform = platform or sys.platform
        self.parser = SystemInfoParser()

    def detect(self) -> bool:
        if self.platform != "win32":
            return False

        OutputFormatter.log("Detecting if we should use Docker Toolbox or not", severity="debug")
        result = self.process_runner.run(
            ["systeminfo", "/FO", "CSV"],
            env=self.context.subprocess_env(include_machine=False),
        )
        if not result.ok:
            OutputFormatter.log(result.stderr.strip(), severity="debug")
            return False

        try:
            info = self.parser.parse(result.stdout)
        except ParseError as exc:
            OutputFormatter.log(str(exc), severity="debug")
            return False

        return needs_machine_fallback(info)
