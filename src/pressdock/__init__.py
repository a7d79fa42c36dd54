from pressdock.core.context import SessionContext
from pressdock.core.models import FrameworkSettings, StackConfig

__version__ = "0.1.0"

__all__ = [
	"FrameworkSettings",
	"SessionContext",
	"StackConfig",
	"__version__",
]
