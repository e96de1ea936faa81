"""
Low-level HTTP request library for GeoSentinel API communication.
This module handles all HTTP requests with automatic retry logic and proper error handling.
"""
import asyncio
import logging
import aiohttp

from .const import HEALTH_PROBE_TIMEOUT

_LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds, multiplied by attempt number for each retry
REQUEST_ATTEMPTS = 2  # maximum number of retry attempts


class ApiResponseError(Exception):
    """Exception raised when the API answers with a non-success status."""
    def __init__(self, status: int, error_json: dict | None = None, url: str = ""):
        self.status = status
        self.error_json = error_json
        self.url = url
        super().__init__(f"API Error {status} from {url}: {error_json}")

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401


async def check_server_health(base_url: str, timeout: int = HEALTH_PROBE_TIMEOUT) -> bool:
    """
    Check if a GeoSentinel server is reachable by calling its public /health endpoint.

    Args:
        base_url: API base URL (without trailing /health)
        timeout: Timeout in seconds for the probe

    Returns:
        True if the server answered 200 with {"status": "ok"}, False otherwise
    """
    url = f"{base_url.rstrip('/')}/health"
    try:
        timeout_config = aiohttp.ClientTimeout(total=timeout)
        session = aiohttp.ClientSession(timeout=timeout_config)

        try:
            async with session.get(url) as response:
                if response.status != 200:
                    _LOGGER.warning("Server %s is not healthy (status %s)", base_url, response.status)
                    return False
                body = await response.json(content_type=None)
                return isinstance(body, dict) and body.get("status") == "ok"
        finally:
            await session.close()

    except (asyncio.TimeoutError, TimeoutError):
        _LOGGER.warning("Timeout while probing %s", url)
        return False
    except Exception as e:
        _LOGGER.warning("Error while probing %s: %s", url, e)
        return False


async def make_request(
    method: str,
    url: str,
    headers: dict,
    payload: dict = None,
    params: dict = None,
    timeout: int = REQUEST_TIMEOUT,
    max_attempts: int = REQUEST_ATTEMPTS
):
    """
    Make an HTTP request with automatic retry on timeout.

    Args:
        method: HTTP method (GET, POST, PUT, etc.)
        url: Target URL for the request
        headers: HTTP headers dictionary
        payload: JSON payload for POST/PUT requests (optional)
        params: URL query parameters (optional)
        timeout: Base timeout in seconds (multiplied by attempt number for each retry)
        max_attempts: Maximum number of retry attempts

    Returns:
        Parsed JSON response (None for an empty body)

    Raises:
        asyncio.TimeoutError: If all retry attempts timeout
        ApiResponseError: If the server answers with a non-2xx status
        ValueError: If response has unexpected content type
    """
    method = method.upper()
    if method not in ("GET", "POST", "PUT", "DELETE"):
        raise ValueError(f"Unsupported HTTP method: {method}")

    for attempt in range(max_attempts):
        try:
            # Timeout grows with each attempt
            timeout_config = aiohttp.ClientTimeout(total=timeout * (attempt + 1))
            session = aiohttp.ClientSession(timeout=timeout_config)

            try:
                response = await session.request(
                    method, url, headers=headers, json=payload, params=params
                )
                return await _process_response(response, url)
            finally:
                await session.close()

        except (asyncio.TimeoutError, TimeoutError):
            if attempt < max_attempts - 1:
                continue
            _LOGGER.warning(
                "Timeout on %s request to %s after %s attempts",
                method, url, max_attempts
            )
            raise

    return None


async def _process_response(response, url: str):
    """
    Process HTTP response and extract JSON data.

    Args:
        response: aiohttp response object
        url: Request URL (for logging)

    Returns:
        Parsed JSON response

    Raises:
        ApiResponseError: For any non-2xx status
        ValueError: If a successful response is not JSON
    """
    content_type = response.headers.get('Content-Type', '')

    if 200 <= response.status < 300:
        if response.status == 204:
            return None
        if 'application/json' in content_type:
            return await response.json()
        text = await response.text()
        if not text:
            return None
        _LOGGER.warning(
            "Unexpected content type in successful response: %s (status %s) from %s",
            content_type, response.status, url
        )
        raise ValueError(f"Expected JSON but got {content_type}: {text[:200]}")

    error_json = None
    if 'application/json' in content_type:
        try:
            error_json = await response.json()
        except Exception as e:  # noqa: BLE001
            _LOGGER.debug("Failed to parse error body from %s: %s", url, e)
    else:
        text = await response.text()
        _LOGGER.debug(
            "Received non-JSON error response from %s: status %s, body preview: %s",
            url, response.status, text[:200]
        )
    raise ApiResponseError(response.status, error_json, url)
