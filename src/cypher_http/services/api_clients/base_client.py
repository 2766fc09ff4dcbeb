import re
from typing import Any, Optional

import httpx
from loguru import logger

from cypher_http.config import CypherSettings
from cypher_http.domain.services.exceptions import TransportError


class APIRequestError(TransportError):
    """Indicates an error during the request (network, timeout, etc.)."""
    pass


class APIHTTPError(TransportError):
    """Indicates an HTTP error response from the server (4xx, 5xx)."""
    def __init__(self, status_code: int, response_content: Any, message: Optional[str] = None):
        """
        Initializes an APIHTTPError with the HTTP status code, response content, and an optional message.

        Args:
            status_code: The HTTP status code returned by the server.
            response_content: The content of the HTTP response.
            message: An optional custom error message. If not provided, a default message is generated.
        """
        self.status_code = status_code
        self.response_content = response_content
        super().__init__(message or f"Server returned HTTP {status_code}")


def mask_uri(uri: str) -> str:
    """Mask the password part of a URI for logging."""
    return re.sub(r"://([^:/@]+):([^@]+)@", r"://\1:***@", uri)


class AsyncHTTPClient:
    """
    Asynchronous HTTP transport shared by queries and transactions.

    Wraps a single httpx.AsyncClient. Every method performs exactly one exchange
    and reads the full body before returning. Unlike ``get``, ``post`` and
    ``delete`` hand back error responses untouched because the transaction
    endpoint reports application errors in the body of 4xx responses.
    """
    def __init__(
        self,
        settings: Optional[CypherSettings] = None,
        default_headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initializes the transport with optional settings and default headers.

        Args:
            settings: Source of the request and connect timeouts. Defaults to ``CypherSettings()``.
            default_headers: Additional headers to include with every request.
            transport: Optional httpx transport, mainly for tests.
        """
        self.settings = settings or CypherSettings()

        headers = {
            "User-Agent": "cypher-http/0.1",
            "Accept": "application/json; charset=UTF-8",
            "Content-Type": "application/json",
        }
        if default_headers:
            headers.update(default_headers)

        self.client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(self.settings.timeout, connect=self.settings.connect_timeout),
            follow_redirects=True,
            transport=transport,
        )
        logger.debug("AsyncHTTPClient initialized")

    async def get(self, url: str, headers: Optional[dict[str, str]] = None) -> httpx.Response:
        """
        Performs an HTTP GET request and raises on error statuses.

        Raises:
            APIHTTPError: If the server responds with an HTTP error status (4xx or 5xx).
            APIRequestError: If a network or request-related error occurs.
        """
        logger.debug(f"GET request to {mask_uri(url)}")
        try:
            response = await self.client.get(url, headers=headers)
            response.raise_for_status()
            logger.debug(f"GET request to {mask_uri(url)} successful with status: {response.status_code}")
            return response
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code} for {mask_uri(url)}: {e.response.text[:200]}")
            raise APIHTTPError(status_code=e.response.status_code, response_content=e.response.text, message=str(e)) from e
        except httpx.RequestError as e:
            logger.error(f"Request error for {mask_uri(url)}: {str(e)}")
            raise APIRequestError(f"Request error for {mask_uri(url)}: {str(e)}") from e

    async def post(
        self, url: str, content: bytes, headers: Optional[dict[str, str]] = None
    ) -> httpx.Response:
        """
        Sends an HTTP POST request with an already encoded JSON body.

        Args:
            url: Absolute URL of the endpoint.
            content: Encoded request body.
            headers: Optional headers overriding the defaults for this request.

        Returns:
            The HTTP response, whatever its status.

        Raises:
            APIRequestError: If a network or request-related error occurs.
        """
        logger.debug(f"POST request to {mask_uri(url)}")
        try:
            response = await self.client.post(url, content=content, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"Request error for {mask_uri(url)}: {str(e)}")
            raise APIRequestError(f"Request error for {mask_uri(url)}: {str(e)}") from e
        logger.debug(f"POST request to {mask_uri(url)} finished with status: {response.status_code}")
        return response

    async def delete(self, url: str, headers: Optional[dict[str, str]] = None) -> httpx.Response:
        """
        Sends an HTTP DELETE request.

        Returns:
            The HTTP response, whatever its status.

        Raises:
            APIRequestError: If a network or request-related error occurs.
        """
        logger.debug(f"DELETE request to {mask_uri(url)}")
        try:
            response = await self.client.delete(url, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"Request error for {mask_uri(url)}: {str(e)}")
            raise APIRequestError(f"Request error for {mask_uri(url)}: {str(e)}") from e
        logger.debug(f"DELETE request to {mask_uri(url)} finished with status: {response.status_code}")
        return response

    async def close(self):
        """
        Closes the underlying asynchronous HTTP client.
        """
        logger.debug("Closing AsyncHTTPClient")
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
