"""Command-line interface for gini."""
