"""HTTP client for the remote account-creation endpoint."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from .config import settings
from .errors import RemoteTransportError

logger = logging.getLogger("app.registration")


class SignupClient:
    """Posts sign-up payloads to `SIGNUP_URL`.

    Every request is bounded by `timeout` seconds. Field errors come back
    as a normal body (`{"errors": {...}}`); anything that is not a JSON
    object, or a non-2xx answer without `errors`, raises
    `RemoteTransportError`.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url or settings.SIGNUP_URL
        self.timeout = timeout or settings.SIGNUP_TIMEOUT_SECONDS
        self._transport = transport

    def signup(self, payload: dict) -> dict:
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=payload, headers={"Accept": "application/json"})
        except httpx.TimeoutException as exc:
            logger.warning("signup timed out after %ss: %s", self.timeout, exc)
            raise RemoteTransportError()
        except httpx.HTTPError as exc:
            logger.warning("signup transport error: %s", exc)
            raise RemoteTransportError()

        try:
            body = response.json()
        except ValueError:
            logger.warning("signup returned non-JSON body (status %s)", response.status_code)
            raise RemoteTransportError()
        if not isinstance(body, dict):
            raise RemoteTransportError()
        if response.is_success or body.get("errors"):
            return body
        logger.warning("signup failed with status %s", response.status_code)
        raise RemoteTransportError()
