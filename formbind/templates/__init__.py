"""Template classification, locating and blank templates."""
