"""Pydantic models and result types."""
