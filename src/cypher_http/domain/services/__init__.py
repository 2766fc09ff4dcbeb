"""Domain service layer."""
