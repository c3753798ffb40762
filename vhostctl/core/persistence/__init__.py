"""Site store and audit ledger."""
