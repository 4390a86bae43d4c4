"""HTTP server for querylog."""
