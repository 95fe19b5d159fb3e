"""
Kitchen Kompanion Assistant Service API Package
"""

from .app import create_app

__all__ = ["create_app"]
