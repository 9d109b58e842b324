"""Web interface for the Study Portal application."""

from .server import create_app, create_app_from_config

__all__ = ["create_app", "create_app_from_config"]
