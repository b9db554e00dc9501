"""Filesystem and run-directory helpers."""
