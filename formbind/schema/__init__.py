"""Field schema registry and roster models."""
