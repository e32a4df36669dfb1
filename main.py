"""
Entry point for the mathfeed practice CLI.

Run with:
    python main.py practice --leitidee "Daten und Zufall"
    python main.py topics
"""
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from src.delivery.feed_cli import main

if __name__ == "__main__":
    main()
