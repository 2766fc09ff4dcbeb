"""Statement, result and transaction protocol layer."""
