"""Synchronous HTTP transport for the compute API.

:class:`HttpClient` wraps :class:`httpx.Client` and handles the mechanical
part of every API call:

- **Auth injection** -- the configured token is sent as ``X-Auth-Token``.
- **Error mapping** -- network failures become
  :class:`~scwcli.exceptions.TransportError`, undecodable bodies become
  :class:`~scwcli.exceptions.DecodeError`, and unexpected status codes
  become :class:`~scwcli.exceptions.APIError` carrying the API's own
  message when it sent one.

Requests are never retried; a failure aborts the current command.

See Also:
    :class:`~scwcli.client.resources.ResourceClient` for the typed
    resource operations built on top of this transport.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from scwcli.exceptions import APIError, DecodeError, TransportError
from scwcli.models import APIErrorBody, ScwConfig
from scwcli.output import debug


class HttpClient:
    """Blocking HTTP client bound to one API endpoint and token.

    Must be used as a context manager so that the underlying connection
    pool is opened and closed.

    Args:
        config: Effective configuration (endpoint, token, request settings).
        transport: Optional :mod:`httpx` transport, used by tests to plug
            in :class:`httpx.MockTransport`.

    Example::

        with HttpClient(config) as http:
            servers = http.get_json("servers", expected=200)["servers"]
    """

    def __init__(
        self,
        config: ScwConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def base_url(self) -> str:
        return self._config.api_endpoint.rstrip("/") + "/"

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpClient:
        kwargs: dict[str, Any] = {
            "base_url": self.base_url,
            "timeout": self._config.request.timeout,
            "verify": self._config.request.verify_ssl,
            "headers": {
                "X-Auth-Token": self._config.token or "",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.Client(**kwargs)
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        """Send a GET request for *path* relative to the endpoint."""
        return self._send("GET", path, params=params)

    def post(self, path: str, payload: Any) -> httpx.Response:
        """Send a POST request with *payload* encoded as JSON."""
        return self._send("POST", path, json_body=payload)

    def get_json(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        expected: int = 200,
    ) -> Any:
        """GET *path* and return the decoded JSON body.

        Raises:
            TransportError: On network failures.
            APIError: When the status code is not *expected*.
            DecodeError: When the body is not JSON.
        """
        response = self.get(path, params=params)
        check_status(response, expected)
        return decode_json(response)

    def post_json(self, path: str, payload: Any, expected: int) -> Any:
        """POST *payload* to *path* and return the decoded JSON body, if any."""
        response = self.post(path, payload)
        check_status(response, expected)
        if not response.content:
            return None
        return decode_json(response)

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Any = None,
    ) -> httpx.Response:
        assert self._client is not None, "Client not initialised -- use as context manager"

        url = f"{self.base_url}{path.lstrip('/')}"
        if json_body is not None:
            debug(f"{method} {url} payload={json_body}")
        else:
            debug(f"{method} {url}")

        kwargs: dict[str, Any] = {"method": method, "url": path.lstrip("/")}
        if params:
            kwargs["params"] = params
        if json_body is not None:
            kwargs["json"] = json_body
        try:
            return self._client.request(**kwargs)
        except httpx.TransportError as exc:
            raise TransportError(f"Cannot reach {url}: {exc}") from exc


# ------------------------------------------------------------------ #
# Response helpers
# ------------------------------------------------------------------ #


def decode_json(response: httpx.Response) -> Any:
    """Return the JSON body of *response* or raise :class:`DecodeError`."""
    try:
        return response.json()
    except ValueError as exc:
        raise DecodeError(
            f"Malformed response from {response.request.url}: {exc}"
        ) from exc


def check_status(response: httpx.Response, expected: int) -> None:
    """Raise :class:`APIError` unless *response* has the *expected* status.

    The API's error body (``{"message": ..., "type": ...}``) is used when
    it can be decoded; otherwise the error carries only the status code.
    """
    if response.status_code == expected:
        return

    message: Optional[str] = None
    error_type: Optional[str] = None
    try:
        body = APIErrorBody.model_validate(response.json())
        message = body.message
        error_type = body.type
    except (ValueError, ValidationError):
        pass

    exc = APIError(response.status_code, message=message, type=error_type)
    debug(
        f"API error: status={exc.status_code} type={exc.type} message={exc.api_message}"
    )
    raise exc
