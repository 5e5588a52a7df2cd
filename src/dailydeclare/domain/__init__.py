"""Domain protocols for the persisted store and notification backend."""
