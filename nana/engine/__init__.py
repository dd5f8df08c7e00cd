"""
Game engines for Nana.

The engine owns the authoritative game state, drives bot seats and runs the
delays between a reveal and its resolution on a virtual clock.
"""

from nana.engine.base import GameEngine
from nana.engine.nana import DEFAULT_CONFIG, NanaEngine
from nana.engine.scheduler import ScheduledEvent, Scheduler

__all__ = ["GameEngine", "NanaEngine", "DEFAULT_CONFIG", "ScheduledEvent", "Scheduler"]
