from __future__ import annotations


class RosterBotError(Exception):
    pass


class ConfigError(RosterBotError, ValueError):
    """Raised by validate_config before anything starts."""


class StoreError(RosterBotError):
    """The sheet could not be read or written (network, auth, quota)."""


class CellNotFoundError(StoreError):
    """No row for the date, or no cell holding the participant's name in it."""
