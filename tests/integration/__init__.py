"""Integration tests for my-memory.

These tests wire real components together on a temporary file database:

- test_mcp_tools.py: MCP tool handlers (request -> handler -> response),
  component initialization and the --call mode

Usage:
    pytest tests/integration/ -v
"""
