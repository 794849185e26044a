"""
spoons - Power Spoons package management CLI tool.

Command-line host for the package manager: install, remove, upgrade, query,
toggle packages, manage secrets, and run enabled packages as a daemon.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
