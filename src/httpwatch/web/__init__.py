"""HTML rendering for the watch page."""
