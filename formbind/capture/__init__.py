"""Signature and image capture adapters."""
