"""Engine settings."""
