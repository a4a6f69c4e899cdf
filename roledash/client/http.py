from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from ..errors import DashboardError, NetworkError, UnauthorizedError, ValidationError
from .session import Session

T = TypeVar("T")

_logger = logging.getLogger(__name__)


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, NetworkError):
        return True
    status = getattr(exc, "status", None)
    return status is not None and 500 <= int(status) < 600


async def call_with_retries(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    retries: int = 1,
    base_delay: float = 0.5,
    log: Optional[logging.Logger] = None,
    **kwargs: Any,
) -> T:
    """Execute an async call with exponential backoff.

    Parameters
    ----------
    func:
        Awaitable callable representing the request.
    retries:
        Number of attempts before giving up.  ``1`` means a single round trip.
    base_delay:
        Delay in seconds before the first retry; each retry doubles it.
    log:
        Optional logger to use. Defaults to a module-level logger.

    Only network failures and 5xx responses are retried.
    """

    logger = log or _logger
    attempt = 0
    while True:
        try:
            return await func(*args, **kwargs)
        except DashboardError as exc:
            status = getattr(exc, "status", None)
            if attempt >= retries - 1 or not _is_retryable(exc):
                raise
            logger.warning(
                "API call retry attempt=%d status=%s error=%s", attempt + 1, status, exc
            )
            delay = base_delay * (2 ** attempt)
            attempt += 1
            await asyncio.sleep(delay)


def _error_message(response: httpx.Response) -> tuple[str, list[str]]:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        detail = data.get("error") or data.get("message") or data.get("detail")
        if isinstance(detail, list):
            # FastAPI body validation errors
            errors = [str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail]
            return "; ".join(errors) or "Request failed", errors
        if detail:
            return str(detail), []
    return f"Request failed with status {response.status_code}", []


class ApiClient:
    """Authenticated JSON transport for the dashboard backend.

    Every request carries ``Authorization: Bearer <token>`` from the
    :class:`Session`.  Transport failures become :class:`NetworkError`,
    ``401`` invalidates the session and raises :class:`UnauthorizedError`,
    any other non-2xx raises :class:`ValidationError` with the server's
    message.  Empty bodies decode to ``None``.
    """

    def __init__(
        self,
        session: Session,
        base_url: str = "",
        *,
        timeout: float = 10.0,
        retries: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.session = session
        self.retries = retries
        self._http = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict | None = None,
        headers: dict | None = None,
        retries: int | None = None,
    ) -> Any:
        return await call_with_retries(
            self._send,
            method,
            path,
            json_body=json_body,
            params=params,
            headers=headers,
            retries=self.retries if retries is None else retries,
        )

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> Any:
        token = self.session.acquire()
        merged = dict(headers or {})
        merged["Content-Type"] = "application/json"
        merged["Authorization"] = f"Bearer {token}"
        content = json.dumps(json_body) if json_body is not None else None
        try:
            response = await self._http.request(
                method, path, content=content, params=params, headers=merged
            )
        except httpx.TransportError as exc:
            _logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc

        if response.status_code == 401:
            message, _ = _error_message(response)
            self.session.invalidate(message)
            raise UnauthorizedError("Unauthorized")
        if response.is_error:
            message, errors = _error_message(response)
            _logger.info(
                "%s %s rejected status=%s message=%s",
                method,
                path,
                response.status_code,
                message,
            )
            raise ValidationError(message, status=response.status_code, errors=errors)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DashboardError("Bad JSON response") from exc
