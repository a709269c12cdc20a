"""
Unit facades.

- base.py: registry ownership and stdio wiring
- compound.py: actions, commands, cron actions and cards
- simple.py: flat operation list
"""

from .base import BaseUnit
from .cards import render_card
from .compound import Unit
from .responses import ActionResponse
from .simple import SimpleUnit

__all__ = [
    "ActionResponse",
    "BaseUnit",
    "SimpleUnit",
    "Unit",
    "render_card",
]
