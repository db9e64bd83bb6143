"""Bridge quote, initiation, completion and lookup."""
