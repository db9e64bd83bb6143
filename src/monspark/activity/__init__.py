"""Global and per-user activity feed."""
