"""Backend for the diagram rendering proxy.

FastAPI route handlers stay thin; the work lives here:
- language tag mapping
- safe path resolution inside the diagrams directory
- !include expansion with cycle, depth and size limits
- the client for the rendering backend

Security note:
Callers control both the path and the include graph. Never log or return
absolute filesystem paths; error messages carry base-relative paths only.
"""
