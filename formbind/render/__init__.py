"""Typesetting, rasterisation and line diffs."""
