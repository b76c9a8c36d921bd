"""Plan translation and element/content resolution backends."""
