"""Exceptions raised across the image search layers."""
from __future__ import annotations


class ImageSearchError(Exception):
    """Base class for search pipeline failures."""


class InvalidSearchRequest(ImageSearchError, ValueError):
    """The caller supplied a query or pagination that cannot be served."""


class InvalidImageRecord(ImageSearchError, ValueError):
    """Image metadata offered for storage failed validation."""


class CandidateSourceError(ImageSearchError, RuntimeError):
    """The metadata store could not produce a candidate set."""


class RankerError(ImageSearchError, RuntimeError):
    """The external ranker call failed; never escapes the ranker boundary."""


__all__ = [
    "ImageSearchError",
    "InvalidSearchRequest",
    "InvalidImageRecord",
    "CandidateSourceError",
    "RankerError",
]
