"""Application entrypoints for Aletheia."""
