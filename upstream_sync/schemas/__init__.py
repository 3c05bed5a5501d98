"""Pydantic schemas for links and repositories."""
