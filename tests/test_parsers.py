import pytest

from pressdock.runtime.parsers import (
    MachineEnvParser,
    SystemInfoParser,
    parse_health_status,
)
from pressdock.utils.diagnostics import ParseError

from conftest import systeminfo_csv


def test_systeminfo_parser_reads_first_record():
    info = SystemInfoParser().parse(systeminfo_csv())

    assert info.os_name == "Microsoft Windows 10 Pro"
    assert info.major_version == 10
    assert info.build_number == 19045
    assert info.hyperv_requirements["VM Monitor Mode Extensions"] is True
    assert info.missing_hyperv_requirements() == []


def test_systeminfo_parser_compares_build_as_integer():
    info = SystemInfoParser().parse(systeminfo_csv(os_version="10.0.9600 N/A Build 9600"))

    assert info.build_number == 9600
    assert info.build_number < 14393


def test_systeminfo_parser_falls_back_to_dotted_build():
    info = SystemInfoParser().parse(systeminfo_csv(os_version="10.0.14393 N/A"))

    assert info.build_number == 14393


def test_systeminfo_parser_reports_missing_requirements():
    info = SystemInfoParser().parse(systeminfo_csv(
        hyperv="VM Monitor Mode Extensions: Yes,Virtualization Enabled In Firmware: No"
    ))

    assert info.missing_hyperv_requirements() == ["Virtualization Enabled In Firmware"]


def test_systeminfo_parser_treats_running_hypervisor_as_satisfied():
    info = SystemInfoParser().parse(systeminfo_csv(
        hyperv="A hypervisor has been detected. Features required for Hyper-V will not be displayed."
    ))

    assert info.hypervisor_detected is True
    assert info.missing_hyperv_requirements() == []


@pytest.mark.parametrize(
    "output",
    [
        "",
        '"Host Name","OS Name"\r\n"DEVBOX","Windows 10 Pro"\r\n',
        systeminfo_csv(os_version="unknown"),
    ],
)
def test_systeminfo_parser_rejects_unusable_output(output):
    with pytest.raises(ParseError):
        SystemInfoParser().parse(output)


def test_machine_env_parser_collects_set_lines():
    output = (
        "SET DOCKER_TLS_VERIFY=1\r\n"
        "SET DOCKER_HOST=tcp://192.168.99.100:2376\r\n"
        "SET DOCKER_CERT_PATH=C:\\Users\\dev\\.docker\\machine\\machines\\default\r\n"
        "SET DOCKER_MACHINE_NAME=default\r\n"
        "REM Run this command to configure your shell:\r\n"
        "REM     @FOR /f \"tokens=*\" %i IN ('docker-machine env default --shell cmd') DO @%i\r\n"
    )

    env = MachineEnvParser().parse(output)

    assert env == {
        "DOCKER_TLS_VERIFY": "1",
        "DOCKER_HOST": "tcp://192.168.99.100:2376",
        "DOCKER_CERT_PATH": "C:\\Users\\dev\\.docker\\machine\\machines\\default",
        "DOCKER_MACHINE_NAME": "default",
    }


def test_machine_env_parser_keeps_values_containing_separators():
    env = MachineEnvParser().parse("SET NO_PROXY=a=b c\n")

    assert env == {"NO_PROXY": "a=b c"}


def test_machine_env_parser_rejects_malformed_set_line():
    with pytest.raises(ParseError):
        MachineEnvParser().parse("SET =nothing\n")


@pytest.mark.parametrize(
    "output, expected",
    [
        ('"healthy"\n', "healthy"),
        ('"starting"', "starting"),
        ("", ""),
        ("null\n", ""),
        ("healthy", "healthy"),
    ],
)
def test_parse_health_status(output, expected):
    assert parse_health_status(output) == expected
