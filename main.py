#!/usr/bin/env python3
"""
ROM Library
Import ROM folders into a game library.

Usage:
    Web API:  python main.py --web [--host 127.0.0.1] [--port 5000]
    Browse:   python main.py --browse
    Scan:     python main.py --scan <folder> --platform <id> [--enrich] [--import]

For CLI help: python main.py --help
"""

import sys

from romlibrary.cli import run_cli


if __name__ == '__main__':
    sys.exit(run_cli())
