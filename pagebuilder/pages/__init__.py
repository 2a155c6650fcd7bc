"""Page section persistence and page-level operations."""
