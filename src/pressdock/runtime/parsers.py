"""Parsers for the text that external tools print.

Each parser only deals with strings; the subprocess calls live with the callers,
which decide what to do when a parser raises ParseError.
"""

from __future__ import annotations

import csv
import io
import json
import re
from dataclasses import dataclass, field
from typing import Dict, List

from pressdock.utils.diagnostics import ParseError

HYPERVISOR_DETECTED_MARKER = "hypervisor has been detected"


@dataclass(frozen=True)
class SystemInfo:
    """The parts of `systeminfo /FO CSV` the environment prober needs."""

    os_name: str
    os_version: str
    major_version: int
    build_number: int
    hyperv_requirements: Dict[str, bool] = field(default_factory=dict)
    hypervisor_detected: bool = False

    def missing_hyperv_requirements(self) -> List[str]:
        if self.hypervisor_detected:
            return []
        return [name for name, available in self.hyperv_requirements.items() if not available]


class SystemInfoParser:
    """Reads the first record of the CSV table printed by `systeminfo /FO CSV`."""

    tool = "systeminfo"

    _LEADING_DIGITS = re.compile(r"^\s*(\d+)")
    _TRAILING_DIGITS = re.compile(r"(\d+)\s*$")
    _DOTTED_BUILD = re.compile(r"^\s*\d+\.\d+\.(\d+)")

    def parse(self, output: str) -> SystemInfo:
        rows = list(csv.DictReader(io.StringIO(output.strip())))
        if not rows:
            raise ParseError(self.tool, "no records in output")

        record = rows[0]
        os_name = self._field(record, "OS Name")
        os_version = self._field(record, "OS Version")
        requirements_text = self._field(record, "Hyper-V Requirements")

        major_match = self._LEADING_DIGITS.match(os_version)
        if major_match is None:
            raise ParseError(self.tool, "OS Version has no major version", os_version)

        build_match = self._TRAILING_DIGITS.search(os_version) or self._DOTTED_BUILD.match(os_version)
        if build_match is None:
            raise ParseError(self.tool, "OS Version has no build number", os_version)

        requirements, detected = self._parse_requirements(requirements_text)

        return SystemInfo(
            os_name=os_name,
            os_version=os_version,
            major_version=int(major_match.group(1)),
            build_number=int(build_match.group(1)),
            hyperv_requirements=requirements,
            hypervisor_detected=detected,
        )

    def _field(self, record: Dict[str, str], name: str) -> str:
        value = record.get(name)
        if value is None:
            raise ParseError(self.tool, f"missing column '{name}'")
        return value

    @staticmethod
    def _parse_requirements(text: str) -> tuple[Dict[str, bool], bool]:
        requirements: Dict[str, bool] = {}
        detected = False

        for entry in text.split(","):
            entry = entry.strip()
            if not entry:
                continue
            if HYPERVISOR_DETECTED_MARKER in entry.lower():
                detected = True
                continue

            name, _, enabled = entry.partition(":")
            requirements[name.strip()] = enabled.strip().lower() == "yes"

        return requirements, detected


class MachineEnvParser:
    """Reads the `SET NAME=VALUE` lines printed by `docker-machine env --shell cmd`."""

    tool = "docker-machine env"

    _SET_LINE = re.compile(r"^SET\s+([A-Za-z_][A-Za-z0-9_]*)=(.*)$")

    def parse(self, output: str) -> Dict[str, str]:
        env: Dict[str, str] = {}
        for raw_line in output.splitlines():
            line = raw_line.strip()
            if not line.startswith("SET"):
                continue

            match = self._SET_LINE.match(line)
            if match is None:
                raise ParseError(self.tool, "malformed SET line", line)
            env[match.group(1)] = match.group(2)

        return env


def parse_health_status(output: str) -> str:
    """Decode the JSON string printed by `docker inspect --format '{{json .State.Health.Status }}'`."""
    text = output.strip()
    if not text:
        return ""
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return text.strip('"')
    return value if isinstance(value, str) else ""
