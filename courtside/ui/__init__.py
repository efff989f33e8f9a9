"""
UI package for the Courtside game tracker.

This package contains the Flask JSON API over live game sessions.
"""
from .web_app import create_app, run_web_app

__all__ = ["create_app", "run_web_app"]
