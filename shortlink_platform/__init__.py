"""
shortlink_platform package initializer.
"""

from . import storage

__all__ = ["storage"]
