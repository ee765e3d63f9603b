"""Template field-binding engine for site safety compliance documents."""

__version__ = "0.1.0"
