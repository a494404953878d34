"""restic invocation: build argv + env from a BackupSpec, then run it.

`build` performs no I/O so commands can be checked without spawning restic.
Repository and credential always travel as environment variables.
"""
from __future__ import annotations
import logging, os, subprocess
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from secretz.config.settings import LATEST_SNAPSHOT, restic_bin
from .configuration import BackupSpec
from .storage import resolve

log = logging.getLogger(__name__)

class ProcessError(Exception): ...

@dataclass(frozen=True)
class Init: ...

@dataclass(frozen=True)
class Run: ...

@dataclass(frozen=True)
class Snapshots: ...

@dataclass(frozen=True)
class Restore:
	host: str
	target: str
	snapshot_id: str = LATEST_SNAPSHOT

@dataclass(frozen=True)
class Gc: ...

Operation = Union[Init, Run, Snapshots, Restore, Gc]


@dataclass
class ProcessInvocation:
	program: str
	args: List[str]
	env: Dict[str, str] = field(default_factory=dict)

	@property
	def argv(self) -> List[str]:
		return [self.program, *self.args]


def _arguments(spec: BackupSpec, op: Operation) -> List[str]:
	if isinstance(op, Init):
		return ['init']
	if isinstance(op, Run):
		# restic wants flags before positionals
		args = ['backup']
		args.extend(f'--exclude={pattern}' for pattern in spec.excludes)
		args.extend(str(t) for t in spec.targets)
		return args
	if isinstance(op, Snapshots):
		return ['snapshots']
	if isinstance(op, Restore):
		return ['restore', '-H', op.host, '--target', op.target, op.snapshot_id]
	if isinstance(op, Gc):
		return ['prune']
	raise TypeError(f'Unsupported operation: {op!r}')


def build(spec: BackupSpec, op: Operation, program: Optional[str] = None) -> ProcessInvocation:
	address, backend_env = resolve(spec.storage)
	env = dict(backend_env)
	env['RESTIC_REPOSITORY'] = address
	env.update(spec.credential.env())
	return ProcessInvocation(program or restic_bin(), _arguments(spec, op), env)


def run(inv: ProcessInvocation) -> int:
	"""Run with inherited stdio; return restic's exit status unchanged."""
	log.debug('Running %s', ' '.join(inv.argv))
	try:
		proc = subprocess.run(inv.argv, env={**os.environ, **inv.env})
	except OSError as e:
		raise ProcessError(f'Cannot execute {inv.program}: {e}') from e
	if proc.returncode != 0:
		log.info('%s exited with status %d', inv.program, proc.returncode)
	return proc.returncode
