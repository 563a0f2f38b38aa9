"""HTTP client wrapper for the three remote services.

``ServiceClient`` wraps an ``httpx.Client`` bound to one service's base URL.
It provides:

- Centralized timeout configuration
- Bearer-token authentication
- Transport failures raised as ``ServiceUnavailable`` naming the service
- An injectable ``httpx`` transport for tests (``httpx.MockTransport``)

Status-code handling stays with the caller: the auth, DA and dApp clients
each map responses onto their own part of the error taxonomy.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_MAX_DETAIL_CHARS = 300


class ServiceUnavailable(RuntimeError):
    """Raised when a request never produced an HTTP response."""

    def __init__(self, service: str, method: str, url: str, cause: Exception) -> None:
        super().__init__(f"{service}: {method} {url} failed: {cause}")
        self.service = service
        self.cause = cause


class MalformedResponse(RuntimeError):
    """Raised when a response body is not the JSON the caller expects."""

    def __init__(self, service: str, detail: str) -> None:
        super().__init__(f"{service}: malformed response: {detail}")
        self.service = service


def describe_error(response: httpx.Response) -> str:
    """Extract a short, human-readable error detail from a failed response."""
    detail = ""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for field in ("error", "message", "detail"):
            value = body.get(field)
            if isinstance(value, dict):
                value = value.get("message") or value
            if value:
                detail = str(value)
                break
    if not detail:
        detail = response.text.strip()
    if len(detail) > _MAX_DETAIL_CHARS:
        detail = detail[:_MAX_DETAIL_CHARS] + "..."
    return f"HTTP {response.status_code}" + (f": {detail}" if detail else "")


def is_auth_rejection(response: httpx.Response) -> bool:
    return response.status_code in (401, 403)


class ServiceClient:
    """Synchronous client for one remote service.

    Parameters
    ----------
    service:
        Short service name used in error messages (``"auth"``, ``"da"``,
        ``"dapp"``).
    base_url:
        Service root; request paths are joined onto it.
    token:
        Optional bearer token sent on every request.
    timeout / connect_timeout:
        Read and connect timeouts in seconds.
    transport:
        Optional ``httpx`` transport.  Tests pass an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        service: str,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._service = service
        self._base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=self._base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            transport=transport,
        )

    @property
    def service(self) -> str:
        return self._service

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", path, **kwargs)

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request and return the response, whatever its status.

        Raises
        ------
        ServiceUnavailable
            On connection errors, timeouts, and other transport failures.
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            logger.debug("%s: %s %s raised %s", self._service, method, url, type(exc).__name__)
            raise ServiceUnavailable(self._service, method, url, exc) from exc
        logger.debug("%s: %s %s -> %d", self._service, method, url, response.status_code)
        return response

    def json(self, response: httpx.Response) -> Any:
        """Decode a JSON body or raise ``MalformedResponse``."""
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse(self._service, f"invalid JSON ({exc})") from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ServiceClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ServiceClient(service={self._service!r}, base_url={self._base_url!r})"
