"""User ledger views."""
