"""
fleetplane configuration.

Pydantic-based settings read from FLEETPLANE_* environment variables
and an optional .env file.
"""

from fleetplane.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
