"""CLI commands implemented with click.

- `adopt` moves a file into the secrets pack
- `config` writes or locates the TOML document
- `backup` drives restic from the loaded config; restic's exit status is ours
"""
from __future__ import annotations
import logging
from pathlib import Path
import click
from secretz.config.settings import (
	EXIT_CONFIG_ERROR, EXIT_IO_ERROR, EXIT_NOT_EXECUTABLE, LATEST_SNAPSHOT, LOG_FORMAT, log_level
)
from secretz.lib import configuration, restic
from secretz.lib.adopt import AdoptionError, adopt as adopt_file
from secretz.lib.configuration import ConfigError

def _fail(message, code: int):
	click.echo(f'Error: {message}', err=True)
	raise SystemExit(code)

def _load(path: Path | None = None) -> configuration.Configuration:
	try:
		return configuration.load_from(path) if path is not None else configuration.load()
	except ConfigError as e:
		_fail(e, EXIT_CONFIG_ERROR)

def _run(op: restic.Operation, path: Path | None = None):
	cfg = _load(path)
	inv = restic.build(cfg.backup, op)
	try:
		code = restic.run(inv)
	except restic.ProcessError as e:
		_fail(e, EXIT_NOT_EXECUTABLE)
	if code:
		raise SystemExit(code)

@click.group()
@click.option('-v', '--verbose', count=True, help='More logging (-vv for debug).')
def cli(verbose):
	"""secretz: restic backups and a managed secrets pack"""
	level = {0: log_level(), 1: 'INFO'}.get(verbose, 'DEBUG')
	logging.basicConfig(level=level, format=LOG_FORMAT)

@cli.command()
@click.argument('file', type=click.Path(path_type=Path))
def adopt(file):
	"""Adopt a file into secretz."""
	cfg = _load()
	try:
		dest = adopt_file(file, cfg.pack_dir())
	except (AdoptionError, OSError) as e:
		_fail(e, EXIT_IO_ERROR)
	if dest is None:
		click.echo(f'Nothing adopted: {file} is not inside a directory under your home.')
		return
	click.echo('file adopted, now start a new shell')


# --- config subcommands ---

@cli.group('config')
def config_group():
	"""Manage configuration."""

@config_group.command('init')
@click.option('-f', '--force', is_flag=True, help='Overwrite existing config.')
@click.option('-r', '--remote', 'remote_storage', is_flag=True, help='Add remote storage sample.')
def config_init(force, remote_storage):
	"""Write default config."""
	try:
		path = configuration.default_config_path()
	except ConfigError as e:
		_fail(e, EXIT_CONFIG_ERROR)
	if path.exists() and not force:
		_fail('config file already exists, use --force to overwrite', EXIT_CONFIG_ERROR)
	try:
		configuration.save(configuration.default_config(remote=remote_storage), path)
	except OSError as e:
		_fail(e, EXIT_IO_ERROR)
	click.echo(f'successfully written new config to {path}', err=True)

@config_group.command('path')
def config_path():
	"""Print where the config file lives."""
	try:
		click.echo(str(configuration.default_config_path()))
	except ConfigError as e:
		_fail(e, EXIT_CONFIG_ERROR)


# --- backup subcommands ---

@cli.group()
def backup():
	"""Run restic against the configured repository."""

@backup.command('init')
def backup_init():
	"""Init new repository."""
	_run(restic.Init())

@backup.command('run')
def backup_run():
	"""Run backup job."""
	_run(restic.Run())

@backup.command('snapshots')
def backup_snapshots():
	"""List snapshots."""
	_run(restic.Snapshots())

@backup.command('restore')
@click.option('-H', '--host', required=True, help='Host tag.')
@click.option('-t', '--target', required=True, help='Directory to restore the backup to (usually "/").')
@click.option('-f', '--config', 'alternate_config', type=click.Path(path_type=Path), help='Load config from an alternate path, useful for initial restores.')
@click.argument('snapshot_id', default=LATEST_SNAPSHOT)
def backup_restore(host, target, alternate_config, snapshot_id):
	"""Restore backup SNAPSHOT_ID ("latest" is accepted)."""
	_run(restic.Restore(host, target, snapshot_id), alternate_config)

@backup.command('gc')
def backup_gc():
	"""Prune unreferenced data from the repository."""
	_run(restic.Gc())
