"""
Local HTTP API used by the foreground window
"""

from .main import create_app

__all__ = ["create_app"]
