"""Bot extensions loaded at startup."""
