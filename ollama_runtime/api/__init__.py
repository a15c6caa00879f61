"""
Release Index Layer.

This package handles all communication with the GitHub releases API.
"""

from .client import ReleaseIndexClient

__all__ = ["ReleaseIndexClient"]
