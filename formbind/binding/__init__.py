"""Binder, documents and editing sessions."""
