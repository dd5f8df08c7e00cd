"""
API module for Nana.

This module provides a high-level, platform-agnostic API for playing Nana,
supporting both synchronous and asynchronous operation.
"""

from nana.api.base import CardGame
from nana.api.nana import NanaGame

__all__ = ["CardGame", "NanaGame"]
