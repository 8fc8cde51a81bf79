"""Stateless function server proxying requests to the AI gateway."""
