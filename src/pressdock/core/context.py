import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field
from pressdock.core.models import FrameworkSettings, StackConfig
from pressdock.core.status import StatusBoard

COMPOSE_FILE = "docker-compose.yml"
SCRIPTS_COMPOSE_FILE = "docker-compose.scripts.yml"


class SessionContext(BaseModel):
    """
    Session state shared by the supervisor, reactor, installer and command runner.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    # Framework Settings (Maps to 'pressdock' section)
    settings: FrameworkSettings = Field(default_factory=FrameworkSettings)

    # Raw preferences, keyed by section then preference name ('basic', 'site')
    preferences: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    # Configuration the stack was last started with
    applied: StackConfig = Field(default_factory=StackConfig)

    # Environment exported by docker-machine; empty unless the fallback is active
    docker_env: Dict[str, str] = Field(default_factory=dict)

    # Set once the environment prober decides Docker cannot run natively
    using_machine: bool = False

    status: StatusBoard = Field(default_factory=StatusBoard)

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None, **data: Any):
        """
        Initialize the context, optionally from a loaded pressdock.yaml dictionary.
        """
        if config_dict:
            if 'settings' not in data:
                data['settings'] = FrameworkSettings(**config_dict.get('pressdock', {}))
            if 'preferences' not in data:
                data['preferences'] = {
                    section: dict(config_dict.get(section) or {})
                    for section in ('basic', 'site')
                }

        super().__init__(**data)

    @property
    def tools_dir(self) -> Path:
        return Path(self.settings.tools_dir).expanduser()

    @property
    def compose_file(self) -> Path:
        return self.tools_dir / COMPOSE_FILE

    @property
    def scripts_compose_file(self) -> Path:
        return self.tools_dir / SCRIPTS_COMPOSE_FILE

    def preference(self, section: str, key: str) -> Any:
        return (self.preferences.get(section) or {}).get(key)

    def set_preference(self, section: str, key: str, value: Any) -> None:
        self.preferences.setdefault(section, {})[key] = value

    def current_config(self) -> StackConfig:
        """Snapshot of the preferences as they are right now."""
        return StackConfig.from_preferences(self.preferences)

    def subprocess_env(self, include_machine: bool = True) -> Dict[str, str]:
        """Environment handed to every docker / docker-compose invocation."""
        env = {"PATH": os.environ.get("PATH", "")}
        if sys.platform == "win32" and "SYSTEMROOT" in os.environ:
            env["SYSTEMROOT"] = os.environ["SYSTEMROOT"]
        if include_machine:
            env.update(self.docker_env)
        return env
