#!/usr/bin/env python3
"""
Main entry point for the Courtside web API.

This script launches the Flask server with games saved as JSON files under
COURTSIDE_DATA_DIR.
"""
import logging

from courtside.services import JsonFileGameStore
from courtside.ui.web_app import run_web_app
from courtside.utils import DATA_DIR, LOG_LEVEL, WEB_HOST, WEB_PORT

if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_web_app(host=WEB_HOST, port=WEB_PORT, store=JsonFileGameStore(DATA_DIR))
