"""Contentflow Core - OAuth-authorized MCP tools driving a research, draft and translate pipeline."""

__version__ = "0.1.0"
