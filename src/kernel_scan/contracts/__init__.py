"""Serialization contracts (cattrs) for reports and configuration."""
