"""Gas credit allocation and reversion."""
