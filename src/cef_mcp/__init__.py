"""CEF MCP Server: browser tools for agents over the Model Context Protocol."""

__version__ = "1.0.0"
