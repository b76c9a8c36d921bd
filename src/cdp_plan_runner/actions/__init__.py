"""Action handlers, one per step kind."""
