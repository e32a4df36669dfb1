"""
mathfeed: Terminal delivery of the adaptive practice feed.

Components:
- feed_cli: Typer/Rich commands (practice, topics, score)
"""

from .feed_cli import app, main

__all__ = [
    "app",
    "main",
]
