"""Data models exchanged with the transactional endpoint."""
