"""Bookshelf: an in-memory book catalogue served over HTTP."""
