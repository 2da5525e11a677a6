"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from coffeeshop.core.config import get_settings, Settings, EnvironmentMode

__all__ = ["get_settings", "Settings", "EnvironmentMode"]
