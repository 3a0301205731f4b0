"""Error taxonomy shared by services and routers.

Routers map these onto HTTP responses:

- ``ValidationError`` -> 400
- ``StorageError`` -> 500 on write paths, default payload on soft-read paths
- ``ConflictSkip`` -> treated as success by the caller
"""

from __future__ import annotations


class AnalyticsError(Exception):
    pass


class ValidationError(AnalyticsError, ValueError):
    pass


class StorageError(AnalyticsError):
    pass


class ConflictSkip(AnalyticsError):
    """An idempotent write found nothing to do (duplicate or missing parent row)."""
