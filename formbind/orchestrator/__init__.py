"""Export coordination."""
