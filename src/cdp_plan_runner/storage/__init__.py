"""Persistence of extracted payloads."""
