import pytest
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

# Ensure src/ is in the python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from pressdock.core.context import SessionContext  # noqa: E402
from pressdock.core.models import FrameworkSettings  # noqa: E402
from pressdock.runtime.process import ProcessResult  # noqa: E402
from pressdock.runtime.retry import RetryPolicy  # noqa: E402

Response = Union[ProcessResult, Callable[[List[str]], ProcessResult]]


def ok(stdout: str = "") -> ProcessResult:
    return ProcessResult(args=[], returncode=0, stdout=stdout)


def fail(stderr: str = "boom", returncode: int = 1) -> ProcessResult:
    return ProcessResult(args=[], returncode=returncode, stderr=stderr)


class FakeProcessRunner:
    """
    Stands in for ProcessRunner. Responses are matched on the longest registered
    argument prefix; a list of responses is consumed in order and its last entry repeats.
    """

    def __init__(self) -> None:
        self.calls: List[Dict] = []
        self.detached: List[Dict] = []
        self._responses: Dict[tuple, List[Response]] = {}

    def on(self, prefix: Sequence[str], *responses: Response) -> "FakeProcessRunner":
        self._responses[tuple(prefix)] = list(responses)
        return self

    def run(self, args, cwd=None, env=None) -> ProcessResult:
        command = [str(arg) for arg in args]
        self.calls.append({"args": command, "cwd": cwd, "env": env})

        match: Optional[tuple] = None
        for prefix in self._responses:
            if tuple(command[: len(prefix)]) == prefix and (match is None or len(prefix) > len(match)):
                match = prefix

        if match is None:
            return ProcessResult(args=command, returncode=0)

        queue = self._responses[match]
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(response):
            response = response(command)
        return ProcessResult(
            args=command,
            returncode=response.returncode,
            stdout=response.stdout,
            stderr=response.stderr,
        )

    def spawn_detached(self, args, cwd=None, env=None) -> bool:
        self.detached.append({"args": [str(arg) for arg in args], "cwd": cwd, "env": env})
        return True

    def commands(self) -> List[List[str]]:
        return [call["args"] for call in self.calls]

    def cli_commands(self) -> List[List[str]]:
        """WP-CLI argument lists passed to `docker-compose ... run --rm cli`."""
        found = []
        for args in self.commands():
            if "run" in args and "cli" in args:
                found.append(args[args.index("cli") + 1:])
        return found


class RecordingClock:
    """Sleep replacement that records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.sleeps: List[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


@pytest.fixture
def root_dir(tmp_path):
    """
    Returns a temporary directory standing in for a wordpress-develop checkout.
    """
    wordpress = tmp_path / "wordpress-develop"
    wordpress.mkdir()
    return wordpress


@pytest.fixture
def tools_dir(tmp_path):
    return tmp_path / "tools"


@pytest.fixture
def context(tools_dir, root_dir):
    return SessionContext(
        settings=FrameworkSettings(tools_dir=tools_dir),
        preferences={
            "basic": {"wordpress-folder": str(root_dir)},
            "site": {"port": 9999},
        },
    )


@pytest.fixture
def process_runner():
    return FakeProcessRunner()


@pytest.fixture
def clock():
    return RecordingClock()


@pytest.fixture
def retry_policy(clock):
    return RetryPolicy(interval_seconds=1.0, sleep=clock.sleep)


CLI_PREFIX = [
    "docker-compose",
    "-f",
    "docker-compose.yml",
    "-f",
    "docker-compose.scripts.yml",
    "run",
    "--rm",
    "cli",
]
HEALTH_PREFIX = ["docker", "inspect"]

SYSTEMINFO_HEADER = '"Host Name","OS Name","OS Version","Hotfix(s)","Hyper-V Requirements"'


def systeminfo_csv(
    os_name="Microsoft Windows 10 Pro",
    os_version="10.0.19045 N/A Build 19045",
    hyperv=(
        "VM Monitor Mode Extensions: Yes,Virtualization Enabled In Firmware: Yes,"
        "Second Level Address Translation: Yes,Data Execution Prevention Available: Yes"
    ),
):
    """Output shaped like `systeminfo /FO CSV`."""
    return (
        f"\r\n{SYSTEMINFO_HEADER}\r\n"
        f'"DEVBOX","{os_name}","{os_version}","2 Hotfix(s) Installed.,[01]: KB1,[02]: KB2","{hyperv}"\r\n'
    )
