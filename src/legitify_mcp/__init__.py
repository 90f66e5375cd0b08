"""Legitify MCP server: human attestation receipts for high-impact agent actions."""

__version__ = "0.3.0"
