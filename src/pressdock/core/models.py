import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PORT = 9999
COMPOSE_PROJECT_STRIP = re.compile(r"[^-_a-z0-9]")


class FrameworkSettings(BaseSettings):
    """
    Framework-level settings (the 'pressdock' section in pressdock.yaml).
    """
    model_config = SettingsConfigDict(env_prefix='PRESSDOCK_', extra='ignore')

    tools_dir: Path = Field(default_factory=lambda: Path.home() / ".pressdock" / "tools")
    log_level: str = "INFO"
    machine_name: str = "default"
    mysql_container: Optional[str] = None
    poll_interval_ms: int = 1000

    @property
    def health_container(self) -> str:
        """
        Container name docker-compose gives the mysql service in the tools project.

        The project name is the tools directory name, lower-cased with everything but
        letters, digits, '-' and '_' removed (docker-compose 1.21 and later). Releases
        before 1.21 also drop '-' and '_'; set mysql_container for those.
        """
        if self.mysql_container:
            return self.mysql_container
        project = COMPOSE_PROJECT_STRIP.sub("", self.tools_dir.name.lower())
        return f"{project}_mysql_1"


class StackConfig(BaseModel):
    """
    The configuration snapshot a stack is started with.

    Built from the 'basic' and 'site' preference sections.
    """
    model_config = ConfigDict(frozen=True)

    wordpress_folder: Optional[str] = None
    gutenberg_folder: Optional[str] = None
    port: Optional[int] = DEFAULT_PORT

    @field_validator("wordpress_folder", "gutenberg_folder", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if value is None:
            return None
        value = str(value)
        return value if value.strip() else None

    @field_validator("port", mode="before")
    @classmethod
    def _coerce_port(cls, value: Any) -> Any:
        return port_preference(value)

    @classmethod
    def from_preferences(cls, preferences: Dict[str, Any]) -> "StackConfig":
        basic = preferences.get("basic") or {}
        site = preferences.get("site") or {}
        return cls(
            wordpress_folder=basic.get("wordpress-folder"),
            gutenberg_folder=basic.get("gutenberg-folder"),
            port=site.get("port"),
        )

    @property
    def is_startable(self) -> bool:
        return bool(self.wordpress_folder) and bool(self.port)

    @property
    def site_url(self) -> str:
        return f"http://localhost:{self.port}"


def coerce_port(value: Any) -> Optional[int]:
    """Best-effort conversion of a port preference; anything unusable becomes None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def port_preference(value: Any) -> Optional[int]:
    """Port a saved preference resolves to. An empty preference means the default."""
    if value in (None, "", 0):
        return DEFAULT_PORT
    return coerce_port(value)


def normalize_host_path(path: str) -> str:
    """Normalize a host folder for embedding in a volume mapping."""
    return os.path.normpath(os.path.expanduser(str(path)))


class HealthCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    test: List[str]
    interval: str = "1s"
    retries: int = 100


class ComposeService(BaseModel):
    """One service block of a docker-compose document."""
    image: str
    ports: Optional[List[str]] = None
    volumes: Optional[List[str]] = None
    links: Optional[List[str]] = None
    environment: Optional[Dict[str, str]] = None
    healthcheck: Optional[HealthCheck] = None
    init: Optional[bool] = None


class ComposeDescriptor(BaseModel):
    """A complete docker-compose document."""
    version: str = "3.7"
    services: Dict[str, ComposeService] = Field(default_factory=dict)
    volumes: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        """Plain-data form, with unset service fields left out."""
        return self.model_dump(mode="json", exclude_none=True)


class DockerStatus(str, Enum):
    MISSING_DAEMON = "missing-daemon"
    STARTING = "starting"
    READY = "ready"
    MISSING_WORDPRESS_FOLDER = "missing-wordpress-folder"


class WordPressStatus(str, Enum):
    INSTALLING = "installing"
    READY = "ready"


class CommandResult(BaseModel):
    """Outcome of a one-shot administrative command."""
    success: bool
    stdout: str = ""
