"""Content Deploy - move content records between a live store and YAML dumps."""

from .cli import app
from .config import DeployConfig

__version__ = "0.1.0"
__all__ = ["app", "DeployConfig"]
