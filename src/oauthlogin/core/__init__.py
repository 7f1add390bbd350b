from .config import Settings, settings
from .security import SecurityUtils, security

__all__ = ["Settings", "settings", "SecurityUtils", "security"]
