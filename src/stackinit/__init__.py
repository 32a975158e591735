"""
stackinit - bootstrap a freshly cloned Remix + Azure stack template
"""

__version__ = "0.1.0"

from .core import StackBootstrapper
from .errors import BootstrapError

__all__ = ["StackBootstrapper", "BootstrapError"]
