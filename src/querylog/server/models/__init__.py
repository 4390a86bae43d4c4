"""Pydantic models for querylog server."""
