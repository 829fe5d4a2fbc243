# src/modules/media/__init__.py
"""Media module: access-scoped links to patient images and the endpoint that serves them."""
