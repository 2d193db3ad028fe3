"""In-process request proxy for server rendering.

Components fetch through the same HTTP client on both sides. On the server
that client's transport is swapped for ``ProxyTransport``, which hands the
request to ``internal_http``: a function that runs the app's own ASGI
pipeline in memory instead of opening a socket back to itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Mapping, Protocol

import httpx

from hydrafx.config import SsrSettings, get_settings

if TYPE_CHECKING:
    from hydrafx.context import RenderContext

logger = logging.getLogger("hydrafx.proxy")


@dataclass(frozen=True)
class ProxyResponse:
    status: int
    status_text: str
    data: bytes
    headers: dict[str, str] = field(default_factory=dict)


class InternalHttp(Protocol):
    def __call__(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Awaitable[ProxyResponse]: ...


ASGIApp = Callable[..., Awaitable[None]]


def make_internal_http(app: ASGIApp, settings: SsrSettings | None = None) -> InternalHttp:
    """Build an ``internal_http`` function bound to an ASGI app.

    A handler that raises produces a 500 response rather than an exception,
    the same outcome a remote caller would see.
    """
    settings = settings or get_settings()
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)

    async def internal_http(
        method: str,
        url: str,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ProxyResponse:
        async with httpx.AsyncClient(
            transport=transport, base_url=settings.internal_base_url
        ) as client:
            response = await client.request(method.upper(), url, content=body, headers=headers)
        logger.debug("internal %s %s -> %d", method.upper(), url, response.status_code)
        return ProxyResponse(
            status=response.status_code,
            status_text=response.reason_phrase,
            data=response.content,
            headers=dict(response.headers),
        )

    return internal_http


# Hop-by-hop or recomputed when the response is rebuilt.
_DROPPED_HEADERS = frozenset({"content-length", "content-encoding", "transfer-encoding"})


class ProxyTransport(httpx.AsyncBaseTransport):
    """httpx transport that routes through the render context's internal_http.

    The proxy is looked up per request, since the server context is provided
    after the client is built. Without one, requests go to the network.
    """

    def __init__(self, ctx: RenderContext) -> None:
        self._ctx = ctx
        self._fallback: httpx.AsyncHTTPTransport | None = None

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        server_ctx = self._ctx.server_ctx
        internal_http = server_ctx.internal_http if server_ctx is not None else None
        if internal_http is None:
            if self._fallback is None:
                self._fallback = httpx.AsyncHTTPTransport()
            return await self._fallback.handle_async_request(request)

        body = await request.aread()
        headers = {
            k: v for k, v in request.headers.items() if k.lower() not in _DROPPED_HEADERS
        }
        result = await internal_http(
            request.method,
            request.url.raw_path.decode("ascii"),
            body or None,
            headers,
        )
        return httpx.Response(
            status_code=result.status,
            headers={
                k: v for k, v in result.headers.items() if k.lower() not in _DROPPED_HEADERS
            },
            content=result.data,
            request=request,
            extensions={"reason_phrase": result.status_text.encode("ascii", "replace")},
        )

    async def aclose(self) -> None:
        if self._fallback is not None:
            await self._fallback.aclose()
