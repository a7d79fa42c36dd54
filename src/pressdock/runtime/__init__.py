"""Stack orchestration: supervisor, reactor and the external-tool boundaries they use."""

from pressdock.runtime.commands import CommandRunner
from pressdock.runtime.compose import build_descriptors, write_descriptors
from pressdock.runtime.contracts import RunToken, SupervisorEvent, SupervisorState
from pressdock.runtime.controller import PressdockRuntimeController
from pressdock.runtime.installer import WordPressInstaller
from pressdock.runtime.machine import MachineBridge
from pressdock.runtime.probe import EnvironmentProber
from pressdock.runtime.process import ProcessResult, ProcessRunner
from pressdock.runtime.reactor import ConfigChangeReactor
from pressdock.runtime.retry import RetryPolicy
from pressdock.runtime.shutdown import ShutdownHandler
from pressdock.runtime.supervisor import StackSupervisor

__all__ = [
	"CommandRunner",
	"ConfigChangeReactor",
	"EnvironmentProber",
	"MachineBridge",
	"PressdockRuntimeController",
	"ProcessResult",
	"ProcessRunner",
	"RetryPolicy",
	"RunToken",
	"ShutdownHandler",
	"StackSupervisor",
	"SupervisorEvent",
	"SupervisorState",
	"WordPressInstaller",
	"build_descriptors",
	"write_descriptors",
]
