"""
api/client.py

HTTP clients for the persistence service and the auth service.

Both are thin, blocking wrappers around ``httpx.Client``. They are meant to
be called from a worker thread (see ``sync/worker.py``), never from the GUI
thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

log = logging.getLogger(__name__)

ANNOTATIONS_PATH = "/api/annotations"
LOGIN_PATH = "/api/auth/login"
REGISTER_PATH = "/api/auth/register"

DEFAULT_TOKEN_HEADER = "x-auth-token"


class ApiError(Exception):
    """A request failed at the transport or HTTP level.

    Attributes:
        status_code: HTTP status, or None for transport errors.
        server_message: The ``message`` field of the error body, if any.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, server_message: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message


@dataclass
class Session:
    """An authenticated session returned by login/register."""
    token: str
    user: Dict[str, Any] = field(default_factory=dict)

    @property
    def username(self) -> str:
        return str(self.user.get("username", ""))


def _server_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return str(body.get("message") or body.get("msg") or "")
    return ""


class _BaseClient:
    """Shared request/response handling."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    def _request(self, method: str, path: str, headers: Optional[Dict[str, str]] = None, json: Any = None) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ApiError: On timeouts, connection errors, non-2xx responses,
                or a body that is not JSON.
        """
        log.debug("%s %s", method, path)
        try:
            with self._client() as client:
                response = client.request(method, path, headers=headers, json=json)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise ApiError(f"{method} {path} timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            msg = _server_message(e.response)
            raise ApiError(f"{method} {path} failed with HTTP {status}", status_code=status, server_message=msg) from e
        except httpx.RequestError as e:
            raise ApiError(f"{method} {path} failed: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"{method} {path} returned a non-JSON body", status_code=response.status_code) from e


class AnnotationApi(_BaseClient):
    """
    Client for the annotation persistence service.

    Every request carries the auth token in ``token_header``. A missing or
    rejected token surfaces as an ``ApiError`` like any other failure.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 30.0,
        token_header: str = DEFAULT_TOKEN_HEADER,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(base_url, timeout, transport)
        self.token = token
        self.token_header = token_header

    def _auth_headers(self) -> Dict[str, str]:
        return {self.token_header: self.token or ""}

    def list_sets(self) -> List[Dict[str, Any]]:
        """Fetch all annotation sets of the authenticated user, oldest first."""
        data = self._request("GET", ANNOTATIONS_PATH, headers=self._auth_headers())
        if not isinstance(data, list):
            raise ApiError("GET annotations returned a non-list body")
        return data

    def create_set(self, rectangles: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Create a new annotation set; the response carries the new ``_id``."""
        data = self._request("POST", ANNOTATIONS_PATH, headers=self._auth_headers(), json={"rectangles": rectangles})
        if not isinstance(data, dict) or not data.get("_id"):
            raise ApiError("POST annotations response has no _id")
        return data

    def update_set(self, set_id: str, rectangles: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Replace the rectangles of an existing annotation set."""
        return self._request(
            "PUT", f"{ANNOTATIONS_PATH}/{set_id}", headers=self._auth_headers(), json={"rectangles": rectangles}
        )


class AuthApi(_BaseClient):
    """Client for the auth service."""

    def login(self, username: str, password: str) -> Session:
        return self._authenticate(LOGIN_PATH, username, password)

    def register(self, username: str, password: str) -> Session:
        return self._authenticate(REGISTER_PATH, username, password)

    def _authenticate(self, path: str, username: str, password: str) -> Session:
        data = self._request("POST", path, json={"username": username, "password": password})
        if not isinstance(data, dict) or not data.get("token"):
            raise ApiError(f"POST {path} response has no token")
        user = data.get("user") or {}
        if not isinstance(user, dict):
            user = {"username": str(user)}
        return Session(token=str(data["token"]), user=user)
