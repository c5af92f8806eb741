"""In-process realtime change feed."""
