"""Credential management and session identity for the snippetbox web app."""

__version__ = "0.1.0"
