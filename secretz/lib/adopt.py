"""Adopt files into the per-user secrets pack.

A file at ~/a/b/secret lands at <secrets_root>/<user>/pack/a/b/secret and the
original is removed. Directories and symlinks are refused outright. Files
that cannot be placed (no home, outside home, directly in home) are skipped.
"""
from __future__ import annotations
import hashlib, logging, os, shutil, stat
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)

class AdoptionError(Exception): ...
class IsDirectoryError(AdoptionError): ...
class IsSymlinkError(AdoptionError): ...


def sha256_file(path: Path) -> str:
	h = hashlib.sha256()
	with open(path, 'rb') as f:
		for chunk in iter(lambda: f.read(65536), b''):
			h.update(chunk)
	return h.hexdigest()


def _home() -> Optional[Path]:
	try:
		return Path(os.path.abspath(Path.home()))
	except (RuntimeError, KeyError):
		return None


def adopt(path: Path, pack_dir: Path) -> Optional[Path]:
	"""Move `path` into `pack_dir`, mirroring its location under $HOME.

	Returns the destination, or None when the file was skipped.
	Filesystem errors propagate. If the copy succeeds but the unlink fails
	the original stays put, leaving a duplicate rather than losing data.
	"""
	path = Path(path)
	mode = os.lstat(path).st_mode
	if stat.S_ISLNK(mode):
		raise IsSymlinkError(f'{path} should not be a symlink')
	if stat.S_ISDIR(mode):
		raise IsDirectoryError(f'{path} should not be a dir')

	home = _home()
	if home is None:
		log.info('Home directory unavailable; not adopting %s', path)
		return None
	absolute = Path(os.path.abspath(path))
	try:
		rel = absolute.relative_to(home)
	except ValueError:
		log.info('%s is outside %s; not adopting', absolute, home)
		return None
	if rel.parent == Path('.'):
		log.info('%s sits directly in the home directory; not adopting', absolute)
		return None

	dest = pack_dir / rel
	dest.parent.mkdir(parents=True, exist_ok=True)
	if os.path.lexists(dest):
		if not stat.S_ISREG(os.lstat(dest).st_mode):
			raise AdoptionError(f'{dest} exists and is not a regular file; original kept')
		log.warning('Overwriting existing %s', dest)
	shutil.copy2(absolute, dest)
	if sha256_file(absolute) != sha256_file(dest):
		raise AdoptionError(f'Copy of {absolute} to {dest} does not match; original kept')
	absolute.unlink()
	log.info('Adopted %s -> %s', absolute, dest)
	return dest
