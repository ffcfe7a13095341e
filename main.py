"""
Smart Alarm — Entry Point.

Single entry point: `python main.py <command>` runs the CLI.
"""

import logging
import sys

from smart_alarm.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from smart_alarm.cli import main

if __name__ == "__main__":
    sys.exit(main())
