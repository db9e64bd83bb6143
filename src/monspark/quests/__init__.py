"""Quest endpoints and completion flow."""
