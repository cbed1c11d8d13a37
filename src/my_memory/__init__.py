"""my-memory - Knowledge store MCP server.

Tracks entities, the observations attached to them and the relations between
them in a single SQLite database, exposed to AI assistants as MCP tools.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
