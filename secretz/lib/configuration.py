"""Configuration model: one TOML document per user profile.

A missing document is not an error; the built-in placeholder config is used
instead and only written when the user asks for it (`config init`).
A document that exists but does not parse, or does not match the schema,
is a hard error.
"""
from __future__ import annotations
import getpass, logging, os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import click
import toml
from secretz.config.settings import (
	APP_INFO, AppInfo, CONFIG_FILENAME, CONFIG_PATH_ENV, PACK_DIRNAME
)
from .storage import BACKEND_TYPES, LocalBackend, S3Backend, StorageBackend

log = logging.getLogger(__name__)

class ConfigError(Exception): ...

@dataclass
class Credential:
	password_file: Optional[Path] = None
	# Inline secret from documents written before password files existed
	password: Optional[str] = None

	def __post_init__(self):
		if (self.password_file is None) == (self.password is None):
			raise ConfigError('Exactly one of password_file or password must be set')

	def env(self) -> Dict[str, str]:
		if self.password_file is not None:
			return {'RESTIC_PASSWORD_FILE': str(self.password_file)}
		return {'RESTIC_PASSWORD': self.password}


@dataclass
class BackupSpec:
	credential: Credential
	storage: StorageBackend
	excludes: List[str] = field(default_factory=list)
	targets: List[Path] = field(default_factory=list)


@dataclass
class Configuration:
	secrets_root: Path
	backup: BackupSpec

	def pack_dir(self) -> Path:
		return self.secrets_root / getpass.getuser() / PACK_DIRNAME

	def to_dict(self) -> Dict[str, Any]:
		b = self.backup
		backup: Dict[str, Any] = {}
		if b.credential.password_file is not None:
			backup['password_file'] = str(b.credential.password_file)
		else:
			backup['password'] = b.credential.password
		backup['excludes'] = list(b.excludes)
		backup['targets'] = [str(t) for t in b.targets]
		backup['storage'] = b.storage.to_dict()
		return {'secrets_root': str(self.secrets_root), 'backup': backup}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'Configuration':
		root = data.get('secrets_root')
		if root is None:
			# Older documents: [secretz] path = "..."
			root = _table(data, 'secretz', required=False).get('path')
		if not isinstance(root, str):
			raise ConfigError('secrets_root must be a path string')
		backup = _table(data, 'backup')
		storage = backup.get('storage', backup.get('repository'))
		if not isinstance(storage, dict):
			raise ConfigError('backup.storage must be a table')
		pw_file = backup.get('password_file')
		password = backup.get('password')
		if pw_file is not None and not isinstance(pw_file, str):
			raise ConfigError('backup.password_file must be a string')
		if password is not None and not isinstance(password, str):
			raise ConfigError('backup.password must be a string')
		spec = BackupSpec(
			credential=Credential(Path(pw_file) if pw_file is not None else None, password),
			storage=_backend_from_dict(storage),
			excludes=_str_list(backup, 'excludes'),
			targets=[Path(t) for t in _str_list(backup, 'targets')],
		)
		return cls(Path(root), spec)


def _table(data: Dict[str, Any], key: str, required: bool = True) -> Dict[str, Any]:
	value = data.get(key)
	if value is None and not required:
		return {}
	if not isinstance(value, dict):
		raise ConfigError(f'[{key}] table missing or malformed')
	return value

def _str_list(data: Dict[str, Any], key: str) -> List[str]:
	value = data.get(key, [])
	if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
		raise ConfigError(f'backup.{key} must be a list of strings')
	return value

def _backend_from_dict(data: Dict[str, Any]) -> StorageBackend:
	kind = data.get('type')
	if not isinstance(kind, str) or kind not in BACKEND_TYPES:
		raise ConfigError(f'backup.storage.type must be one of {sorted(BACKEND_TYPES)}, got {kind!r}')
	try:
		if kind == 'local':
			return LocalBackend(Path(_required_str(data, 'path')))
		return S3Backend(
			bucket=_required_str(data, 'bucket'),
			access_key_id=_required_str(data, 'access_key_id'),
			secret_access_key=_required_str(data, 'secret_access_key'),
			endpoint=_optional_str(data, 'endpoint'),
			region=_optional_str(data, 'region'),
		)
	except ConfigError as e:
		raise ConfigError(f'backup.storage ({kind}): {e}') from e

def _required_str(data: Dict[str, Any], key: str) -> str:
	value = data.get(key)
	if not isinstance(value, str):
		raise ConfigError(f'{key} must be a string')
	return value

def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
	value = data.get(key)
	if value is not None and not isinstance(value, str):
		raise ConfigError(f'{key} must be a string')
	return value


def default_config(remote: bool = False) -> Configuration:
	"""Placeholder document; every value must be edited before real use."""
	storage: StorageBackend = LocalBackend(Path('/mnt/backupz/wk'))
	if remote:
		storage = S3Backend(
			bucket='my_bucket',
			endpoint='https://my-s3-endpoint.net',
			access_key_id='access_key_id',
			secret_access_key='secret_access_key',
			region='us-east-1',
		)
	return Configuration(
		secrets_root=Path('/mnt/secretz'),
		backup=BackupSpec(
			credential=Credential(password_file=Path('/mnt/secretz/CHANGE_ME.restic-password')),
			storage=storage,
			excludes=['target'],
			targets=[Path('/mnt/codez'), Path('/mnt/secretz')],
		),
	)


def default_config_path(app: AppInfo = APP_INFO) -> Path:
	env_path = os.environ.get(CONFIG_PATH_ENV)
	if env_path:
		return Path(env_path)
	try:
		return Path(click.get_app_dir(app.name)) / CONFIG_FILENAME
	except (OSError, RuntimeError, KeyError) as e:
		raise ConfigError(f'Cannot resolve config directory: {e}') from e

def load_from(path: Path) -> Configuration:
	try:
		raw = Path(path).read_bytes()
	except OSError as e:
		log.debug('No readable config at %s (%s); using defaults', path, e)
		return default_config()
	try:
		data = toml.loads(raw.decode('utf-8'))
	except (UnicodeDecodeError, toml.TomlDecodeError) as e:
		raise ConfigError(f'{path}: {e}') from e
	try:
		return Configuration.from_dict(data)
	except ConfigError as e:
		raise ConfigError(f'{path}: {e}') from e

def load() -> Configuration:
	return load_from(default_config_path())

def save(cfg: Configuration, path: Path | None = None) -> Path:
	"""Write cfg as TOML via a temp file + replace. Returns the path written."""
	path = Path(path) if path is not None else default_config_path()
	path.parent.mkdir(parents=True, exist_ok=True)
	tmp = path.with_name(path.name + '.tmp')
	tmp.write_text(toml.dumps(cfg.to_dict()))
	try:
		os.replace(tmp, path)
	except OSError:
		tmp.unlink(missing_ok=True)
		raise
	log.info('Wrote config to %s', path)
	return path
