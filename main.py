#!/usr/bin/env python3
"""
Convenience entry point for running bikeslots directly.

Usage: python main.py [command] [options]
"""

from bikeslots.cli.app import app

if __name__ == "__main__":
    app()
