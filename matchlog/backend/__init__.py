"""Matchlog backend API client."""

from matchlog.backend.client import BackendClient

__all__ = ["BackendClient"]
