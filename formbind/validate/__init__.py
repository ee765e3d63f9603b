"""Presence validation."""
