"""Lagos Transit: bus stop search and route planning over MCP."""

__version__ = "0.1.0"
