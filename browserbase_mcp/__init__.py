"""Browserbase MCP Enhanced: HTTP service for remote browser automation."""

__version__ = "1.0.0"
