import pytest

from pressdock.core.models import DockerStatus, WordPressStatus
from pressdock.core.status import DOCKER_AXIS, WORDPRESS_AXIS, StatusBoard
from pressdock.runtime.contracts import (
    RunTokenSource,
    SupervisorEvent,
    SupervisorState,
    WatcherEvent,
    WatcherState,
    transition_supervisor_state,
    transition_watcher_state,
)


def test_supervisor_happy_path_transitions():
    state = SupervisorState.IDLE
    for event in (
        SupervisorEvent.MACHINE_REQUIRED,
        SupervisorEvent.CHECK_ENGINE,
        SupervisorEvent.ENGINE_AVAILABLE,
        SupervisorEvent.STACK_STARTED,
        SupervisorEvent.DATABASE_HEALTHY,
        SupervisorEvent.INSTALL_COMPLETE,
    ):
        state = transition_supervisor_state(state, event)

    assert state == SupervisorState.READY


def test_supervisor_missing_config_aborts_from_engine_wait():
    state = transition_supervisor_state(SupervisorState.IDLE, SupervisorEvent.CHECK_ENGINE)
    assert transition_supervisor_state(state, SupervisorEvent.CONFIG_MISSING) == SupervisorState.ABORTED


@pytest.mark.parametrize(
    "state, event",
    [
        (SupervisorState.IDLE, SupervisorEvent.STACK_STARTED),
        (SupervisorState.WAIT_FOR_ENGINE, SupervisorEvent.DATABASE_HEALTHY),
        (SupervisorState.STARTING, SupervisorEvent.INSTALL_COMPLETE),
        (SupervisorState.READY, SupervisorEvent.CHECK_ENGINE),
        (SupervisorState.ABORTED, SupervisorEvent.ENGINE_AVAILABLE),
    ],
)
def test_supervisor_invalid_transitions_raise(state, event):
    with pytest.raises(ValueError):
        transition_supervisor_state(state, event)


def test_supervisor_reset_returns_to_idle_from_anywhere():
    for state in SupervisorState:
        assert transition_supervisor_state(state, SupervisorEvent.RESET) == SupervisorState.IDLE


def test_run_token_source_only_latest_token_is_current():
    source = RunTokenSource()
    first = source.issue()
    second = source.issue()

    assert source.is_current(first) is False
    assert source.is_current(second) is True

    source.revoke()
    assert source.is_current(second) is False


def test_watcher_transitions_reject_reload_while_watching():
    state = transition_watcher_state(WatcherState.STOPPED, WatcherEvent.START)
    assert state == WatcherState.WATCHING

    with pytest.raises(ValueError):
        transition_watcher_state(state, WatcherEvent.RELOAD_COMPLETE)


def test_status_board_moves_forward_only_until_reset():
    board = StatusBoard()
    seen = []
    board.subscribe(lambda change: seen.append((change.axis, change.status)))

    assert board.publish(DOCKER_AXIS, DockerStatus.MISSING_DAEMON) is True
    assert board.publish(DOCKER_AXIS, DockerStatus.MISSING_DAEMON) is True
    assert board.publish(DOCKER_AXIS, DockerStatus.READY) is True
    assert board.publish(DOCKER_AXIS, DockerStatus.STARTING) is False
    assert board.get(DOCKER_AXIS) == "ready"

    board.reset()
    assert board.snapshot() == {DOCKER_AXIS: None, WORDPRESS_AXIS: None}
    assert board.publish(DOCKER_AXIS, DockerStatus.STARTING) is True

    assert seen == [
        ("docker", "missing-daemon"),
        ("docker", "missing-daemon"),
        ("docker", "ready"),
        ("docker", "starting"),
    ]


def test_status_board_axes_are_independent():
    board = StatusBoard()
    board.publish(DOCKER_AXIS, DockerStatus.READY)
    board.publish(WORDPRESS_AXIS, WordPressStatus.INSTALLING)

    assert board.snapshot() == {"docker": "ready", "wordpress": "installing"}
