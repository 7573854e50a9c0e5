"""Linter for Kubernetes objects fetched from a live cluster."""

__version__ = "0.1.0"