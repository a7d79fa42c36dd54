from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from pressdock.core.models import DockerStatus, WordPressStatus

DOCKER_AXIS = "docker"
WORDPRESS_AXIS = "wordpress"

# Position of each status within its axis. A run only ever moves rightwards.
_STATUS_ORDER: Dict[str, List[Enum]] = {
    DOCKER_AXIS: [
        DockerStatus.MISSING_DAEMON,
        DockerStatus.STARTING,
        DockerStatus.READY,
        DockerStatus.MISSING_WORDPRESS_FOLDER,
    ],
    WORDPRESS_AXIS: [
        WordPressStatus.INSTALLING,
        WordPressStatus.READY,
    ],
}


@dataclass(frozen=True)
class StatusChange:
    """Payload delivered to status subscribers."""

    axis: str
    status: str


StatusListener = Callable[[StatusChange], None]


class StatusBoard:
    """Two-axis status owned by the supervisor and observed by the host."""

    def __init__(self) -> None:
        self._current: Dict[str, Optional[Enum]] = {axis: None for axis in _STATUS_ORDER}
        self._listeners: List[StatusListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def get(self, axis: str) -> Optional[str]:
        current = self._current[axis]
        return current.value if current is not None else None

    def snapshot(self) -> Dict[str, Optional[str]]:
        return {axis: self.get(axis) for axis in self._current}

    def publish(self, axis: str, status: Enum) -> bool:
        """
        Publish a status. Re-publishing the current status is allowed and notifies
        listeners again; moving backwards is ignored until reset().
        """
        order = _STATUS_ORDER[axis]
        with self._lock:
            current = self._current[axis]
            if current is not None and order.index(status) < order.index(current):
                return False
            self._current[axis] = status

        change = StatusChange(axis=axis, status=status.value)
        for listener in list(self._listeners):
            listener(change)
        return True

    def reset(self) -> None:
        with self._lock:
            for axis in self._current:
                self._current[axis] = None
