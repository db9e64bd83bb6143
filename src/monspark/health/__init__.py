"""Health, readiness and version endpoints."""
