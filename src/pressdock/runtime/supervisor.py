from __future__ import annotations

import threading
from typing import Optional

from pressdock.cli.formatter import OutputFormatter
from pressdock.core.context import SessionContext
from pressdock.core.models import DEFAULT_PORT, DockerStatus, StackConfig, WordPressStatus
from pressdock.core.status import DOCKER_AXIS, WORDPRESS_AXIS
from pressdock.runtime.commands import CommandRunner
from pressdock.runtime.compose import write_descriptors
from pressdock.runtime.contracts import (
    RunToken,
    RunTokenSource,
    SupervisorEvent,
    SupervisorState,
    transition_supervisor_state,
)
from pressdock.runtime.installer import WordPressInstaller
from pressdock.runtime.machine import MachineBridge
from pressdock.runtime.parsers import parse_health_status
from pressdock.runtime.probe import EnvironmentProber
from pressdock.runtime.process import ProcessRunner
from pressdock.runtime.retry import RetryPolicy, policy_from_interval_ms

HEALTHY = "healthy"


class StackSupervisor:
    """Drives the stack from idle to a ready WordPress install.

    Each run holds a RunToken. Issuing a new token (restart) makes the older run
    stop at its next phase boundary or poll iteration without touching state.
    """

    def __init__(
        self,
        context: SessionContext,
        process_runner: Optional[ProcessRunner] = None,
        retry_policy: Optional[RetryPolicy] = None,
        prober: Optional[EnvironmentProber] = None,
        bridge: Optional[MachineBridge] = None,
        runner: Optional[CommandRunner] = None,
    ) -> None:
        self.context = context
        self.process_runner = process_runner or ProcessRunner()
        self.retry_policy = retry_policy or policy_from_interval_ms(context.settings.poll_interval_ms)
        self.prober = prober or EnvironmentProber(context, self.process_runner)
        self.bridge = bridge or MachineBridge(context, self.process_runner)
        self.runner = runner or CommandRunner(context, self.process_runner)

        self.state = SupervisorState.IDLE
        self.tokens = RunTokenSource()
        # Guards token checks together with the state and status writes they allow.
        self._lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None

    def detect_environment(self) -> bool:
        """Decide once per process whether the docker-machine fallback is needed."""
        self.context.using_machine = self.prober.detect()
        return self.context.using_machine

    def start(self, background: bool = True) -> RunToken:
        """Begin a new run, superseding any run already in progress."""
        token = self.tokens.issue()
        if background:
            self._thread = threading.Thread(target=self.run, args=(token,), daemon=True)
            self._thread.start()
        else:
            self.run(token)
        return token

    def restart(self, background: bool = True) -> RunToken:
        OutputFormatter.log("Restarting the stack", severity="debug")
        return self.start(background=background)

    def stop(self) -> None:
        """Abandon the current run at its next checkpoint."""
        self.tokens.revoke()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def run(self, token: Optional[RunToken] = None) -> SupervisorState:
        """Run the lifecycle on the calling thread; returns the state the run ended in."""
        token = token or self.tokens.issue()
        with self._lock:
            if not self._is_current(token):
                return self.state
            self.state = transition_supervisor_state(self.state, SupervisorEvent.RESET)
            self.context.status.reset()

        if self.context.using_machine:
            if not self._advance(token, SupervisorEvent.MACHINE_REQUIRED):
                return self.state
            port = self.context.current_config().port or DEFAULT_PORT
            self.bridge.start(port)

        if not self._advance(token, SupervisorEvent.CHECK_ENGINE):
            return self.state

        OutputFormatter.log("Checking if daemon is running", severity="debug")
        if not self.wait_for_engine(token):
            return self.state

        OutputFormatter.log("Preparing to start Docker", severity="debug")
        self._publish(token, DOCKER_AXIS, DockerStatus.STARTING)

        config = self.context.current_config()
        if not config.is_startable:
            OutputFormatter.log("Bailing, preferences not set", severity="debug")
            self._publish(token, DOCKER_AXIS, DockerStatus.MISSING_WORDPRESS_FOLDER)
            self._advance(token, SupervisorEvent.CONFIG_MISSING)
            return self.state

        if not self._advance(token, SupervisorEvent.ENGINE_AVAILABLE):
            return self.state
        self.context.applied = config

        self.start_stack(config)
        self._publish(token, DOCKER_AXIS, DockerStatus.READY)
        if not self._advance(token, SupervisorEvent.STACK_STARTED):
            return self.state

        self._publish(token, WORDPRESS_AXIS, WordPressStatus.INSTALLING)
        installer = WordPressInstaller(
            self.context,
            self.runner,
            wait_for_database=lambda: self._await_database(token),
        )
        if not installer.install(config):
            return self.state

        if self._advance(token, SupervisorEvent.INSTALL_COMPLETE):
            self._publish(token, WORDPRESS_AXIS, WordPressStatus.READY)
        return self.state

    def is_engine_available(self) -> bool:
        result = self.process_runner.run(["docker", "info"], env=self.context.subprocess_env())
        return result.ok

    def wait_for_engine(self, token: RunToken) -> bool:
        return self.retry_policy.poll(
            self.is_engine_available,
            on_failure=lambda attempt: self._publish(token, DOCKER_AXIS, DockerStatus.MISSING_DAEMON),
            should_continue=lambda: self._is_current(token),
        )

    def start_stack(self, config: StackConfig) -> bool:
        """Regenerate the descriptors and bring the persistent services up detached."""
        write_descriptors(self.context, config)

        OutputFormatter.log("Starting docker containers", severity="debug")
        result = self.runner.compose("up", "-d")
        if not result.ok:
            OutputFormatter.log(f"docker-compose up failed: {result.stderr.strip()}", severity="warning")
            return False

        OutputFormatter.log("Docker containers started", severity="debug")
        return True

    def database_health(self) -> str:
        result = self.process_runner.run(
            [
                "docker",
                "inspect",
                "--format",
                "{{json .State.Health.Status }}",
                self.context.settings.health_container,
            ],
            cwd=self.context.tools_dir,
            env=self.context.subprocess_env(),
        )
        if not result.ok:
            return ""
        return parse_health_status(result.stdout)

    def wait_for_database(self, token: RunToken) -> bool:
        return self.retry_policy.poll(
            lambda: self.database_health() == HEALTHY,
            should_continue=lambda: self._is_current(token),
        )

    def _await_database(self, token: RunToken) -> bool:
        if not self.wait_for_database(token):
            return False
        return self._advance(token, SupervisorEvent.DATABASE_HEALTHY)

    def _is_current(self, token: RunToken) -> bool:
        return self.tokens.is_current(token)

    def _advance(self, token: RunToken, event: SupervisorEvent) -> bool:
        with self._lock:
            if not self._is_current(token):
                return False
            self.state = transition_supervisor_state(self.state, event)
            return True

    def _publish(self, token: RunToken, axis: str, status) -> None:
        with self._lock:
            if self._is_current(token):
                self.context.status.publish(axis, status)
