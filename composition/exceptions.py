"""
Exceptions raised by the Composition game core.
"""


class GameControllerError(Exception):
    """Base exception for game controller errors."""
    pass


class ConfigurationMissingError(GameControllerError):
    """Raised when no game settings exist for the requested level."""

    def __init__(self, level):
        self.level = level
        super().__init__(f"No game settings configured for level: {getattr(level, 'name', level)}")


class InvalidSessionStateError(GameControllerError):
    """Raised when session is in an invalid state for the requested operation."""
    pass
