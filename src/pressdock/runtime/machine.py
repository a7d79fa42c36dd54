from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional

from pressdock.cli.formatter import OutputFormatter
from pressdock.core.context import SessionContext
from pressdock.runtime.parsers import MachineEnvParser
from pressdock.runtime.process import ProcessResult, ProcessRunner
from pressdock.utils.diagnostics import ParseError

PORT_FORWARD_RULE = "wphttp"
VBOX_INSTALL_PATH_VAR = "VBOX_MSI_INSTALL_PATH"


def vboxmanage_path() -> Path:
    return Path(os.environ.get(VBOX_INSTALL_PATH_VAR, "")) / "VBoxManage"


class MachineBridge:
    """Runs Docker inside a docker-machine VirtualBox VM when the host can't run it natively."""

    def __init__(self, context: SessionContext, process_runner: Optional[ProcessRunner] = None) -> None:
        self.context = context
        self.process_runner = process_runner or ProcessRunner()
        self.parser = MachineEnvParser()

    @property
    def machine_name(self) -> str:
        return self.context.settings.machine_name

    def start(self, port: int) -> Dict[str, str]:
        """Start the VM, forward ``port`` to it and load its connection environment."""
        # The bridge runs before any descriptor is written; its commands run from the tools dir.
        self.context.tools_dir.mkdir(parents=True, exist_ok=True)

        OutputFormatter.log("Starting docker machine", severity="debug")
        self._run(["docker-machine", "start", self.machine_name])

        OutputFormatter.log("Configuring machine port forwarding", severity="debug")
        self.forward_port(port)

        OutputFormatter.log("Collecting docker environment info", severity="debug")
        env = self.collect_environment()
        self.context.docker_env = env
        OutputFormatter.log(f"Docker environment: {env}", severity="debug")
        return env

    def forward_port(self, port: int) -> None:
        """Replace the NAT rule that exposes the site port on localhost."""
        vboxmanage = str(vboxmanage_path())
        self._run([vboxmanage, "controlvm", self.machine_name, "natpf1", "delete", PORT_FORWARD_RULE])
        self._run([
            vboxmanage,
            "controlvm",
            self.machine_name,
            "natpf1",
            f"{PORT_FORWARD_RULE},tcp,127.0.0.1,{port},,{port}",
        ])

    def collect_environment(self) -> Dict[str, str]:
        result = self._run(["docker-machine", "env", self.machine_name, "--shell", "cmd"])
        if not result.ok:
            return {}
        try:
            return self.parser.parse(result.stdout)
        except ParseError as exc:
            OutputFormatter.log(str(exc), severity="debug")
            return {}

    def _run(self, args: List[str]) -> ProcessResult:
        # docker-machine must not see a previous session's DOCKER_* variables.
        result = self.process_runner.run(
            args,
            cwd=self.context.tools_dir,
            env=self.context.subprocess_env(include_machine=False),
        )
        if not result.ok:
            OutputFormatter.log(result.stderr.strip(), severity="debug")
        return result
