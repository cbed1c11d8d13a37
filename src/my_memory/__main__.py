"""MCP server entry point for my-memory.

This module provides the main entry point for the my-memory MCP server with:
- CLI argument parsing (defaults come from MemorySettings / .env)
- Component initialization in dependency order
- Tool registration for all operations
- Signal handling for graceful shutdown
- Logging to stderr (CRITICAL for MCP stdio)

Usage:
    python -m my_memory [options]

    Options:
        --database-path PATH    SQLite database file (default: data/my-memory.sqlite)
        --busy-timeout-ms MS    Write lock wait in milliseconds (default: 5000)
        --log-level LEVEL       Logging level (default: INFO)
        --call TOOL --args JSON Call one tool directly, print its JSON result and exit

CRITICAL: MCP servers using stdio transport must NEVER write to stdout
as it corrupts JSON-RPC messages. All logging goes to stderr.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

# Load .env file - must be done before any config access
load_dotenv()

# Initialize logging first, before any imports that might log
logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(log_level: str) -> None:
    """Configure logging to stderr (never stdout for MCP servers).

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,  # Critical: never use stdout in MCP servers
    )

    logger.info(f"Logging initialized at {log_level.upper()} level")


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments.

    Defaults are taken from MemorySettings, so environment variables and
    .env values apply unless a flag overrides them.

    Args:
        argv: Argument list (default: sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    from my_memory.config import MemorySettings

    settings = MemorySettings()

    parser = argparse.ArgumentParser(
        description="my-memory MCP server: entities, observations and relations on SQLite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Direct tool call mode (scripts and debugging)
    parser.add_argument(
        "--call",
        type=str,
        metavar="TOOL_NAME",
        help="Call a tool directly and exit",
    )
    parser.add_argument(
        "--args",
        type=str,
        default="{}",
        help="JSON arguments for --call mode",
    )

    parser.add_argument(
        "--database-path",
        type=Path,
        default=settings.get_database_path(),
        help="SQLite database file (from MY_MEMORY_DATABASE_PATH or DATABASE_PATH)",
    )
    parser.add_argument(
        "--busy-timeout-ms",
        type=int,
        default=settings.busy_timeout_ms,
        help="Write lock wait in milliseconds (from MY_MEMORY_BUSY_TIMEOUT_MS)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=settings.log_level.upper(),
        choices=LOG_LEVELS,
        help="Logging level (from MY_MEMORY_LOG_LEVEL)",
    )

    return parser.parse_args(argv)


def initialize_components(args: argparse.Namespace) -> dict[str, Any]:
    """Initialize all components in dependency order.

    Initialization order follows dependency graph:
    1. SQLiteStore (single connection shared by every operation)
    2. KnowledgeEngine (record CRUD over the store)
    3. SummaryService (digests and importance search over the engine)
    4. Tool instances (RecordTools, QueryTools)

    Args:
        args: Parsed CLI arguments

    Returns:
        Dictionary containing all initialized components

    Raises:
        Exception: If any component initialization fails
    """
    logger.info("Initializing components...")
    components: dict[str, Any] = {}

    try:
        # 1. Initialize SQLiteStore
        logger.info(f"Initializing SQLiteStore (path={args.database_path})")
        from my_memory.storage import SQLiteStore

        store = SQLiteStore(
            db_path=args.database_path,
            busy_timeout_ms=args.busy_timeout_ms,
        )
        components["sqlite_store"] = store

        # 2. Initialize KnowledgeEngine
        logger.info("Initializing KnowledgeEngine")
        from my_memory.engine import KnowledgeEngine

        engine = KnowledgeEngine(store)
        components["engine"] = engine

        # 3. Initialize SummaryService
        logger.info("Initializing SummaryService")
        from my_memory.engine import SummaryService

        summary_service = SummaryService(engine)
        components["summary_service"] = summary_service

        # 4. Initialize Tool instances
        logger.info("Initializing RecordTools")
        from my_memory.tools import RecordTools

        components["record_tools"] = RecordTools(engine)

        logger.info("Initializing QueryTools")
        from my_memory.tools import QueryTools

        components["query_tools"] = QueryTools(summary_service)

        logger.info("All components initialized successfully")
        return components

    except Exception as e:
        logger.error(f"Failed to initialize components: {e}", exc_info=True)
        raise


def handle_shutdown(signum: int, _frame: Any) -> None:
    """Handle SIGINT/SIGTERM for graceful shutdown.

    Args:
        signum: Signal number
        _frame: Current stack frame
    """
    logger.info(f"Received signal {signum}, shutting down gracefully...")
    # Note: FastMCP handles cleanup automatically
    sys.exit(0)


def build_tool_map() -> dict[str, Any]:
    """Map MCP tool names to the mcp_server functions that implement them."""
    from my_memory import mcp_server

    return {
        "create_entity": mcp_server.create_entity,
        "get_entities": mcp_server.get_entities,
        "update_entity": mcp_server.update_entity,
        "delete_entities": mcp_server.delete_entities,
        "create_observation": mcp_server.create_observation,
        "get_observations": mcp_server.get_observations,
        "update_observation": mcp_server.update_observation,
        "delete_observations": mcp_server.delete_observations,
        "create_relation": mcp_server.create_relation,
        "get_relations": mcp_server.get_relations,
        "update_relation": mcp_server.update_relation,
        "delete_relations": mcp_server.delete_relations,
        "get_entity_summary": mcp_server.get_entity_summary,
        "search_by_importance": mcp_server.search_by_importance,
    }


def call_tool_directly(args: argparse.Namespace) -> None:
    """Call a tool directly and print JSON result to stdout.

    Lets scripts invoke a tool via subprocess without an MCP client.

    Args:
        args: Parsed CLI arguments with --call and --args
    """
    import asyncio
    import json

    tool_name = args.call
    try:
        tool_args = json.loads(args.args)
    except json.JSONDecodeError as e:
        print(json.dumps({"error": f"Invalid JSON args: {e}"}))
        sys.exit(1)

    tool_map = build_tool_map()
    if tool_name not in tool_map:
        print(json.dumps({"error": f"Unknown tool: {tool_name}"}))
        sys.exit(1)

    method = tool_map[tool_name]

    components = initialize_components(args)

    from my_memory.mcp_server import set_tool_instances

    set_tool_instances(components["record_tools"], components["query_tools"])

    async def run_tool() -> dict[str, Any]:
        try:
            result = await method(**tool_args)
            return result if isinstance(result, dict) else {"result": result}
        except Exception as e:
            return {"error": str(e)}

    try:
        result = asyncio.run(run_tool())
    finally:
        components["sqlite_store"].close()
    print(json.dumps(result))


def main() -> None:
    """Main entry point for MCP server.

    Workflow:
    1. Parse CLI arguments
    2. Setup logging to stderr
    3. Initialize components
    4. Set global tool instances
    5. Register signal handlers
    6. Run MCP server with stdio transport
    """
    args = parse_arguments()

    # Handle direct tool call mode
    if args.call:
        setup_logging("WARNING")  # Quiet logging for --call mode
        call_tool_directly(args)
        return

    setup_logging(args.log_level)

    logger.info("Starting my-memory MCP Server...")
    logger.info(
        f"Configuration: database_path={args.database_path}, "
        f"busy_timeout_ms={args.busy_timeout_ms}"
    )

    try:
        components = initialize_components(args)

        # Set global tool instances in mcp_server module
        from my_memory.mcp_server import mcp, set_tool_instances

        set_tool_instances(
            records=components["record_tools"],
            query=components["query_tools"],
        )

        # Register signal handlers for graceful shutdown
        signal.signal(signal.SIGINT, handle_shutdown)
        signal.signal(signal.SIGTERM, handle_shutdown)

        logger.info("MCP server ready, starting stdio transport...")

        # mcp.run() is synchronous and manages its own event loop
        mcp.run(transport="stdio")

    except Exception as e:
        logger.error(f"Server failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
