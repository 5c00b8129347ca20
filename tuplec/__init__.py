"""Public API of the :mod:`tuplec` translator."""

from . import constants as _constants
from . import translator as _translator
from .constants import *  # noqa: F401,F403
from .translator import *  # noqa: F401,F403

__version__ = "0.3.0"

__all__ = ["__version__"]
__all__ += getattr(_constants, "__all__", [])
__all__ += getattr(_translator, "__all__", [])
