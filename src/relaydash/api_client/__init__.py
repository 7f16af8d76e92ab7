"""Typed API client for the integrations dashboard endpoints."""

from .client import ApiClientError, IntegrationsAPIClient

__all__ = ["ApiClientError", "IntegrationsAPIClient"]
