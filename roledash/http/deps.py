from __future__ import annotations

from dataclasses import dataclass
import hashlib
import hmac
import logging

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session


@dataclass
class RequestContext:
    token_id: str
    method: str
    path: str


async def get_db() -> AsyncSession:
    async with get_session() as session:
        yield session


def _token_id(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()[:12]


async def bearer_auth(
    request: Request,
    authorization: str | None = Header(None),
) -> RequestContext:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    token = token.strip()
    allowed = request.app.state.config.server.api_tokens
    ok = any(hmac.compare_digest(token, candidate) for candidate in allowed)
    client_ip = request.client.host if request.client else "unknown"
    logging.debug(
        "Bearer auth client=%s token=%s result=%s",
        client_ip,
        _token_id(token),
        "hit" if ok else "miss",
    )
    if not ok:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return RequestContext(
        token_id=_token_id(token), method=request.method, path=request.url.path
    )
