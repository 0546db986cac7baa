"""Exception types shared by the core and the startup code."""

from __future__ import annotations


class MentionBotError(Exception):
    """Base class for all bot errors."""


class ConfigError(MentionBotError):
    """A required setting is missing or invalid."""


class AuthenticationError(MentionBotError):
    """Login or session restore against the homeserver failed."""


class RoomNotFoundError(MentionBotError):
    """A report room is unknown to the client."""


class SendError(MentionBotError):
    """The homeserver rejected a message or reaction."""
