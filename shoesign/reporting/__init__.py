"""Performance tracking and ledger reporting."""
