"""
HTTP retrieval helper shared by the manifest client and the code cache.
"""

import logging

import httpx

from powerspoons.errors import EmptyResponse, HttpError, NetworkError

logger = logging.getLogger(__name__)


async def fetch_text(client: httpx.AsyncClient, url: str) -> str:
    """
    GET a URL and return its body.

    Args:
        client: Shared async HTTP client (carries the timeout)
        url: URL to fetch

    Returns:
        Response body text

    Raises:
        HttpError: If the status is not 200
        EmptyResponse: If the body is empty
        NetworkError: If the request could not complete
    """
    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        raise NetworkError(f"Request to {url} failed: {e}") from e

    if response.status_code != 200:
        logger.debug("GET %s -> %s", url, response.status_code)
        raise HttpError(response.status_code, url)

    body = response.text
    if not body:
        raise EmptyResponse(f"Empty response from {url}")

    return body
