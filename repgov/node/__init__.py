"""
RepGov Node

HTTP host for the governance engine.
"""

from .app import build_engine, create_app

__all__ = ["build_engine", "create_app"]
