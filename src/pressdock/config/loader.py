import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict

from pressdock.utils.diagnostics import ConfigLoadError

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]+))?\}")

ALLOWED_SECTIONS = {"pressdock", "basic", "site"}


def interpolate_env_vars(content: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variables."""
    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, content)


def load_config(path: Path) -> Dict[str, Any]:
    """
    Load pressdock.yaml with environment variable interpolation.

    Keeps only the known sections: pressdock, basic, site. A missing or empty
    file loads as {}; one that cannot be read or parsed raises ConfigLoadError.
    """
    if not path.exists():
        return {}

    try:
        content = path.read_text()
        interpolated_content = interpolate_env_vars(content)
        full_config = yaml.safe_load(interpolated_content) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigLoadError(str(path), str(e)) from e

    if not isinstance(full_config, dict):
        raise ConfigLoadError(str(path), "top level is not a mapping")

    filtered_config = {
        k: v for k, v in full_config.items()
        if k in ALLOWED_SECTIONS and isinstance(v, dict)
    }

    return filtered_config


def diff_preferences(previous: Dict[str, Any], current: Dict[str, Any]) -> list[tuple[str, str, Any]]:
    """Return (section, key, new_value) for every preference that changed between two loads."""
    changes: list[tuple[str, str, Any]] = []

    for section in sorted(set(previous) | set(current)):
        before = previous.get(section) or {}
        after = current.get(section) or {}
        for key in sorted(set(before) | set(after)):
            if before.get(key) != after.get(key):
                changes.append((section, key, after.get(key)))

    return changes
