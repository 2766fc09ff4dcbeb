"""HTTP transport used by the protocol layer."""

from .base_client import AsyncHTTPClient, APIHTTPError, APIRequestError, mask_uri

__all__ = [
    "AsyncHTTPClient",
    "APIHTTPError",
    "APIRequestError",
    "mask_uri",
]
