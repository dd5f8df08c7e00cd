"""
Platform adapters for the Nana engine.

This package provides adapters that translate between the core game engine
and concrete front ends.
"""

from nana.adapters.base import PlatformAdapter
from nana.adapters.cli import CLIAdapter
from nana.adapters.dummy import DummyAdapter

__all__ = ["PlatformAdapter", "CLIAdapter", "DummyAdapter"]
