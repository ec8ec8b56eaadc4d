"""HTTP front door."""
