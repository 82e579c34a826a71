"""Core data models and rule tables for mcp-watch."""
