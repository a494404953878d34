"""Project configuration settings.

Only constants required by the command tree and the library layer live here.
Environment overrides are resolved at call time so tests can monkeypatch them.
"""

from dataclasses import dataclass
import logging, os

@dataclass(frozen=True)
class AppInfo:
	name: str

APP_INFO = AppInfo(name="secretz")
CONFIG_FILENAME = "config.toml"

# Environment overrides
CONFIG_PATH_ENV = "SECRETZ_CONFIG"
RESTIC_BIN_ENV = "SECRETZ_RESTIC"
LOG_LEVEL_ENV = "SECRETZ_LOG_LEVEL"

# Backup engine
RESTIC_BIN = "restic"
DEFAULT_S3_ENDPOINT = "s3.amazonaws.com"
LATEST_SNAPSHOT = "latest"

# Managed secrets tree
PACK_DIRNAME = "pack"

# Exit codes (sysexits.h) for failures raised by the wrapper itself
EXIT_IO_ERROR = 74
EXIT_CONFIG_ERROR = 78
EXIT_NOT_EXECUTABLE = 127

# Logging
LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def restic_bin() -> str:
	return os.environ.get(RESTIC_BIN_ENV) or RESTIC_BIN


def log_level() -> str:
	level = os.environ.get(LOG_LEVEL_ENV, LOG_LEVEL).upper()
	# Unknown names fall back to the default
	return level if isinstance(logging.getLevelName(level), int) else LOG_LEVEL

__all__ = [
	'AppInfo','APP_INFO','CONFIG_FILENAME','CONFIG_PATH_ENV','RESTIC_BIN_ENV','LOG_LEVEL_ENV',
	'RESTIC_BIN','DEFAULT_S3_ENDPOINT','LATEST_SNAPSHOT','PACK_DIRNAME',
	'EXIT_IO_ERROR','EXIT_CONFIG_ERROR','EXIT_NOT_EXECUTABLE','LOG_LEVEL','LOG_FORMAT',
	'restic_bin','log_level'
]
