"""
Session-gated starter service.

The package bundles a FastAPI application with an edge-style session gate
in front of protected pages and a small numeric log exposed over RPC-style
routes.
"""
