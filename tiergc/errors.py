"""Exceptions raised outside the compaction core."""


class ContextGCError(Exception):
    """Base error for tiergc."""


class ConversationFormatError(ContextGCError):
    """A conversation file could not be read as a list of messages."""
