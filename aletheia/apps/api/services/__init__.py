"""Handlers behind the stateless function endpoints."""
