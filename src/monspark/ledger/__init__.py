"""Off-chain ledger: users, transactions, allocations, activity feed."""
