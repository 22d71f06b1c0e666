"""SeisCloud exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class SeisCloudError(Exception):
    """Base exception for all SeisCloud failures."""


class SeisCloudConfigError(SeisCloudError):
    """Raised for invalid configuration, dataset metadata, or grid requests."""


class SeisCloudRangeError(SeisCloudConfigError):
    """Raised when a logical coordinate does not lie on the declared grid."""


class SeisCloudFormatError(SeisCloudError):
    """Raised when a stored object disagrees with its declared record layout."""


class SeisCloudStorageError(SeisCloudError):
    """Raised for blob store connectivity and IO failures."""


class SeisCloudSessionError(SeisCloudError):
    """Raised when a frame store session is used outside the open state."""


class SeisCloudDependencyError(SeisCloudError):
    """Raised when an optional runtime dependency is missing."""
