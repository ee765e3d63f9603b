"""Outer surfaces: CLI and HTTP API."""
