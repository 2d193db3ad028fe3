"""HTTP API client shared by server and client renders.

Fetch code written against ``use_api_client()`` runs unchanged on both
sides. The server's client dispatches in memory via ``ProxyTransport``; the
client's goes over the network to ``public_base_url``.
"""

from __future__ import annotations

from typing import Any

import httpx

from hydrafx.cell import AsyncData, use_async_data
from hydrafx.component import current_instance
from hydrafx.config import SsrSettings, get_settings
from hydrafx.context import RenderContext, current_render_context
from hydrafx.errors import UsageError
from hydrafx.proxy import ProxyTransport


def install_api_client(
    ctx: RenderContext,
    settings: SsrSettings | None = None,
    *,
    base_url: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the render context's API client and attach it to ctx."""
    settings = settings or get_settings()
    if ctx.producing:
        origin = settings.internal_base_url
        transport = transport or ProxyTransport(ctx)
    else:
        origin = settings.public_base_url
    client = httpx.AsyncClient(
        base_url=base_url or origin.rstrip("/") + settings.api_prefix,
        transport=transport,
    )
    ctx.api_client = client
    return client


def use_api_client() -> httpx.AsyncClient:
    if current_instance() is None:
        raise UsageError("use_api_client() must be called during component setup")
    ctx = current_render_context()
    if ctx is None or ctx.api_client is None:
        raise UsageError("Cannot use the api client outside of a render with an api client installed")
    return ctx.api_client


def use_api(
    method: str,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    json: Any = None,
    **options: Any,
) -> AsyncData[Any]:
    """Data call that requests ``url`` from the API and yields the decoded JSON."""
    client = use_api_client()

    async def fetch() -> Any:
        response = await client.request(method, url, params=params, json=json)
        response.raise_for_status()
        return response.json()

    return use_async_data(fetch, **options)
