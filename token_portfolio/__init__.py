"""Token portfolio ledger service package."""
