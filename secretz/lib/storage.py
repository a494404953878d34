"""Storage backends: map a backend to a restic repository address + env.

Resolution is purely syntactic. Credentials are not checked here; restic
rejects bad ones when it runs.
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Dict, Optional, Tuple, Union
from secretz.config.settings import DEFAULT_S3_ENDPOINT

@dataclass
class LocalBackend:
	path: Path
	type: ClassVar[str] = 'local'

	def resolve(self) -> Tuple[str, Dict[str, str]]:
		return str(self.path), {}

	def to_dict(self) -> Dict[str, str]:
		return {'type': self.type, 'path': str(self.path)}


@dataclass
class S3Backend:
	bucket: str
	access_key_id: str
	secret_access_key: str
	endpoint: Optional[str] = None
	region: Optional[str] = None
	type: ClassVar[str] = 's3'

	def url(self) -> str:
		# An empty endpoint counts as unset
		return f"s3:{self.endpoint or DEFAULT_S3_ENDPOINT}/{self.bucket}"

	def resolve(self) -> Tuple[str, Dict[str, str]]:
		env = {
			'AWS_ACCESS_KEY_ID': self.access_key_id,
			'AWS_SECRET_ACCESS_KEY': self.secret_access_key,
		}
		if self.region:
			env['AWS_DEFAULT_REGION'] = self.region
		return self.url(), env

	def to_dict(self) -> Dict[str, str]:
		out = {'type': self.type, 'bucket': self.bucket}
		if self.endpoint is not None: out['endpoint'] = self.endpoint
		out['access_key_id'] = self.access_key_id
		out['secret_access_key'] = self.secret_access_key
		if self.region is not None: out['region'] = self.region
		return out


StorageBackend = Union[LocalBackend, S3Backend]

BACKEND_TYPES = {'local': LocalBackend, 's3': S3Backend}


def resolve(backend: StorageBackend) -> Tuple[str, Dict[str, str]]:
	"""Return (repository address, backend-specific environment)."""
	return backend.resolve()
