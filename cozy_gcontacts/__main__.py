"""
Entry point for running cozy_gcontacts as a module.

Usage:
    python -m cozy_gcontacts --help
    python -m cozy_gcontacts sync --direction both
"""

from cozy_gcontacts.cli import cli

if __name__ == "__main__":
    cli()
