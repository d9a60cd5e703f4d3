"""Route modules for the claudemon HTTP API."""
