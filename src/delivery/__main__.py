"""
Entry point for running mathfeed as a module.

Usage:
    python -m src.delivery practice --topic Analysis/Kurvendiskussion
    python -m src.delivery topics
    python -m src.delivery --help
"""
from .feed_cli import main

if __name__ == "__main__":
    main()
