"""Event notifications emitted while plans execute."""
