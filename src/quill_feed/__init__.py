"""Quill Feed: a micro-blogging feed with cursor pagination and optimistic updates."""

__version__ = "0.1.0"
