"""mcp-x-query: Twitter/X read tools for MCP hosts, answered by Grok's x_search."""

__version__ = "1.0.0"
