"""Middleware for querylog server."""
