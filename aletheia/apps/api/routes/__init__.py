"""HTTP routers for the function server."""
