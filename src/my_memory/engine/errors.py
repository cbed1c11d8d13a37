"""Errors raised by the my-memory query engine.

Engine errors propagate to the caller as exceptions. Only the MCP tool layer
turns them into failure responses.
"""


class KnowledgeError(Exception):
    """Base class for knowledge engine errors."""

    pass


class ValidationError(KnowledgeError):
    """Required fields missing, unknown record kind, or an invalid value."""

    pass


class NotFoundError(KnowledgeError):
    """An update or delete targeted an id that matched no rows."""

    pass


class NoFieldsError(KnowledgeError):
    """An update supplied no fields from the kind's allow-list."""

    pass


class NoSelectorError(KnowledgeError):
    """A delete supplied no selection criterion."""

    pass


class DataCorruptionError(KnowledgeError):
    """A stored value could not be parsed back (e.g. invalid properties JSON)."""

    pass
