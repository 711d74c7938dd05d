"""
Infant Health Monitor - Main Entry Point

Example usage:
    python main.py path/to/recording.wav
    python main.py --stream --config config/config.yaml path/to/recording.wav
"""

import sys

from infant_monitor.cli import main


if __name__ == "__main__":
    sys.exit(main())
