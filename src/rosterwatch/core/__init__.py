"""Transport layer for the detector web API."""

from .api_client import ApiError, RosterApiClient  # noqa: F401

__all__ = ["ApiError", "RosterApiClient"]
