"""Program entry point (CLI dispatcher).

Commands live in secretz.cli.commands; main remains a thin wrapper.
"""
from __future__ import annotations
from secretz.cli.commands import cli

def main():  # pragma: no cover - thin wrapper
	cli()

if __name__ == '__main__':  # pragma: no cover
	main()
