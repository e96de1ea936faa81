"""
Low-level authentication logic for the GeoSentinel API.

Responsible for:
- Obtaining access/refresh tokens via the login endpoint
- Exchanging a refresh token for a new access token
- Revoking the session on logout
- Building the standard authorization headers used by all API calls
"""
import logging

from custom_components.geosentinel.const import AUTH_REFRESH_TIMEOUT
from custom_components.geosentinel.requests import make_request

_LOGGER = logging.getLogger(__name__)


class LoginResponse:
    """Parsed response from the login and refresh endpoints."""

    access_token: str | None = None
    refresh_token: str | None = None
    user: dict | None = None

    def __init__(self, json: dict) -> None:
        self.access_token = json["accessToken"]
        self.refresh_token = json.get("refreshToken")
        self.user = json.get("user")

    def __str__(self) -> str:
        return f"user: {self.user}, refresh_token present: {self.refresh_token is not None}"


async def login(base_url: str, email: str, password: str) -> LoginResponse:
    """
    Obtain tokens from the GeoSentinel API.

    Corresponding CURL command:
    curl -X 'POST' '<base_url>/auth/login' \\
      -H 'Content-Type: application/json' \\
      -d '{"email": "EMAIL", "password": "PASSWORD"}'

    Raises ApiResponseError (401 on wrong credentials) or TimeoutError.
    """
    url = f"{base_url}/auth/login"
    json_response = await make_request(
        "POST", url, _json_headers(), payload={"email": email, "password": password}
    )
    return LoginResponse(json_response)


async def refresh_access_token(base_url: str, refresh_token: str) -> LoginResponse:
    """
    Exchange a refresh token for a new access token.

    The server may rotate the refresh token; LoginResponse.refresh_token is None
    when it did not.

    Corresponding CURL command:
    curl -X 'POST' '<base_url>/auth/refresh' -d '{"refreshToken": "TOKEN"}'
    """
    url = f"{base_url}/auth/refresh"
    json_response = await make_request(
        "POST",
        url,
        _json_headers(),
        payload={"refreshToken": refresh_token},
        timeout=AUTH_REFRESH_TIMEOUT,
        max_attempts=1,
    )
    return LoginResponse(json_response)


async def logout(base_url: str, access_token: str) -> None:
    """Revoke the current session server-side."""
    url = f"{base_url}/auth/logout"
    await make_request("POST", url, get_standard_headers(access_token), max_attempts=1)


def _json_headers() -> dict:
    return {
        "accept": "application/json",
        "Content-Type": "application/json",
    }


def get_standard_headers(token: str) -> dict:
    """
    Build the standard HTTP headers used by all authenticated GeoSentinel API requests.

    :param token: Bearer access token obtained from :func:`login` or :func:`refresh_access_token`.
    :return: Dictionary of HTTP headers.
    """
    return {
        "accept": "application/json",
        "Content-Type": "application/json",
        "Authorization": f"Bearer {token}",
    }
