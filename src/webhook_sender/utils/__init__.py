"""
Package: utils
Description: Shared helpers for the webhook client.
"""

from .logger import get_logger

__all__ = ["get_logger"]
