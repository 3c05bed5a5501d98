"""Synchronizes downstream repositories with their upstream through pull requests."""
