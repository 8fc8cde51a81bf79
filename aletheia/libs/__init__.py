"""Shared libraries used by the Aletheia function server and session layer."""
