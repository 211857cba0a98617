"""
Top-level package for the portal search service.

This package builds an in-memory, per-locale search index over the
portal's calculators, reference articles and standards explainers,
scores documents with simple weighted field matches (with synonym
expansion), and serves the grouped results over a small FastAPI app
and a command line runner.  Importing it has no side effects.
"""
