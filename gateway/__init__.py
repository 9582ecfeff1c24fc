"""MCP gateway: a JSON-RPC tool registry and dispatcher."""

__version__ = "0.1.0"
