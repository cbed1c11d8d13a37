"""Response helpers shared by the MCP tool classes.

Every tool returns a dictionary:
- success: Boolean indicating operation success
- data: Operation result (on success)
- error: Human-readable error message (on failure)
"""

import logging
from typing import Any

from my_memory.engine.errors import KnowledgeError
from my_memory.storage.sqlite_store import StoreContentionError

# MCP servers must never write to stdout (corrupts JSON-RPC)
logger = logging.getLogger(__name__)


def success_response(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def failure_response(operation: str, error: Exception) -> dict[str, Any]:
    """Log a failed operation and turn it into an error response.

    Caller errors and lock contention are expected outcomes and log at
    WARNING. Anything else is logged at ERROR with its traceback.
    """
    if isinstance(error, (KnowledgeError, StoreContentionError)):
        logger.warning(f"{operation} failed: {error}")
    else:
        logger.error(f"{operation} failed: {error}", exc_info=error)
    return {"success": False, "error": str(error)}
