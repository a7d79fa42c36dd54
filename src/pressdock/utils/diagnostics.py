from typing import Optional


class PressdockError(Exception):
    """Base class for errors raised by pressdock."""


class ParseError(PressdockError):
    """
    Raised when the output of an external tool cannot be understood.

    Callers at the subprocess boundary catch this and fall back to a safe default.
    """
    def __init__(self, tool: str, message: str, line: Optional[str] = None):
        self.tool = tool
        self.message = message
        self.line = line
        ctx = f" (line: {line!r})" if line is not None else ""
        super().__init__(f"Could not parse {tool} output: {message}{ctx}")


class ConfigurationMissingError(PressdockError):
    """Raised when a command needs a preference that has not been set."""
    def __init__(self, preference: str):
        self.preference = preference
        super().__init__(f"Preference '{preference}' is not set.")


class ConfigLoadError(PressdockError):
    """Raised when the preferences file exists but cannot be read or parsed."""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not load {path}: {reason}")
