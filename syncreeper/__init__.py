"""
SyncReeper - mirror GitHub repositories into a Syncthing-shared directory.

This package keeps local clones of an account's repositories up to date
without touching local work, and keeps Syncthing's .stignore in step with
each repository's .gitignore.
"""

__version__ = "1.0.0"
__author__ = "SyncReeper Team"
__description__ = "Mirror GitHub repositories into a Syncthing-shared directory"

from .server import main

__all__ = ["main"]
