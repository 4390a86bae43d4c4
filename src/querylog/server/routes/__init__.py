"""API routes for querylog server."""
