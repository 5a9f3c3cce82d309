"""
Web application for Agent Academy.

Serves the model gateway and catalog endpoints over HTTP.
"""

from .app import create_app

__all__ = ["create_app"]
