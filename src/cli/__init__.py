"""Command-line interface for LitheDB."""
