"""
Backend package for the portfolio site.

This package provides a FastAPI application over the hosted content store,
with a data access layer and the view models the public pages and the admin
screens are assembled from.
"""
