"""
Content manager for the class website.

This package provides a FastAPI application backing the gallery, the class
structure roster, the confession board and the site settings, with two
interchangeable persistence backends (SQLAlchemy database or flat JSON files).
"""
