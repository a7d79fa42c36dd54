from __future__ import annotations

from typing import List, Optional

from pressdock.cli.formatter import OutputFormatter
from pressdock.core.context import COMPOSE_FILE, SCRIPTS_COMPOSE_FILE, SessionContext
from pressdock.core.models import CommandResult
from pressdock.runtime.compose import CLI_SERVICE
from pressdock.runtime.process import ProcessResult, ProcessRunner


def compose_command(*args: str, scripts: bool = False) -> List[str]:
    """Build a docker-compose invocation against the tools directory descriptors."""
    command = ["docker-compose", "-f", COMPOSE_FILE]
    if scripts:
        command.extend(["-f", SCRIPTS_COMPOSE_FILE])
    command.extend(args)
    return command


class CommandRunner:
    """Runs one-shot services from the scripts descriptor in throwaway containers."""

    def __init__(self, context: SessionContext, process_runner: Optional[ProcessRunner] = None) -> None:
        self.context = context
        self.process_runner = process_runner or ProcessRunner()

    def run_cli(self, *args: str) -> CommandResult:
        """Run a WP-CLI command. Failures are logged and reported, never raised."""
        return self.run_service(CLI_SERVICE, *args)

    def run_service(self, service: str, *args: str) -> CommandResult:
        result = self.process_runner.run(
            compose_command("run", "--rm", service, *args, scripts=True),
            cwd=self.context.tools_dir,
            env=self.context.subprocess_env(),
        )
        if not result.ok:
            OutputFormatter.log(result.stderr.strip(), severity="debug")
            return CommandResult(success=False, stdout=result.stdout)
        return CommandResult(success=True, stdout=result.stdout)

    def compose(self, *args: str) -> ProcessResult:
        """Run a docker-compose subcommand against the persistent descriptor."""
        return self.process_runner.run(
            compose_command(*args),
            cwd=self.context.tools_dir,
            env=self.context.subprocess_env(),
        )

    def teardown(self) -> bool:
        """Stop and remove the persistent stack, waiting for docker-compose to finish."""
        result = self.compose("down")
        if not result.ok:
            OutputFormatter.log(result.stderr.strip(), severity="debug")
        return result.ok
