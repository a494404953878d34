"""Configuration settings and constants for secretz.

Exposes the constants from `settings` at package level so application code
can write `from secretz.config import APP_INFO`. Keep the values themselves
in `settings.py`.
"""

from .settings import *  # noqa: F401,F403
from .settings import __all__  # noqa: F401
