"""
Constants for the Courtside game tracker.

This module contains basketball rule limits and configuration values used
throughout the application. Deployment settings can be overridden through
environment variables.
"""
import os
from pathlib import Path

# Application metadata
APP_TITLE = "Courtside"

# Court rules
MAX_ACTIVE_PLAYERS = 5
MIN_RECOMMENDED_ON_COURT = 3
FOUL_LIMIT = 5
FOUL_WARNING_THRESHOLD = 4

# Period configuration (minutes)
PERIOD_LENGTHS = (10, 20)
DEFAULT_PERIOD_LENGTH = 20
DEFAULT_PERIOD_COUNT = 2
MIN_PERIOD_COUNT = 1
MAX_PERIOD_COUNT = 10

# Friendly labels for different period counts (used for UI hints)
PERIOD_LABELS = {
    1: "Game",
    2: "Half",
    4: "Quarter",
}

# Clock refresh rate for on-screen countdowns
TICK_INTERVAL_SECONDS = 0.1

# Where JSON game files are stored. Can be overridden using COURTSIDE_DATA_DIR.
DATA_DIR = os.environ.get(
    "COURTSIDE_DATA_DIR", str(Path.home() / ".courtside" / "games")
)

LOG_LEVEL = os.environ.get("COURTSIDE_LOG_LEVEL", "INFO")

# Web server binding (localhost only by default)
WEB_HOST = os.environ.get("COURTSIDE_HOST", "127.0.0.1")
WEB_PORT = int(os.environ.get("COURTSIDE_PORT", "7122"))
