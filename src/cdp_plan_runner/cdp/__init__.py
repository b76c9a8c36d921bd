"""DevTools protocol transport, sessions and in-page scripts."""
