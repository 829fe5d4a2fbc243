# src/modules/conversations/__init__.py
"""Conversations module: state model, store and read projection for the admin dashboard."""
