"""Template rendering for new scaffolds."""
