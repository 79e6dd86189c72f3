"""API routers for contentsync."""
