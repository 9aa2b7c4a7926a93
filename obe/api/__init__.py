"""
API module for the REST API implementation.
"""

from .rest_api import ObeRestAPI

__all__ = [
    "ObeRestAPI",
]
