"""Render context: the store, the mode and the server collaborators of one render.

A context is made once per document request on the server (producing) and
once per page on the client (consuming). Components reach it through
``use_render_context()`` while it is active, so intermediate components
never pass it along.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterator

from hydrafx.config import SsrSettings, get_settings
from hydrafx.document import extract_ssr_data
from hydrafx.errors import UsageError
from hydrafx.ids import CallCounter
from hydrafx.store import DataStore
from hydrafx.strategy import ConsumingStrategy, ProducingStrategy

if TYPE_CHECKING:
    import httpx

    from hydrafx.proxy import InternalHttp


class RenderMode(str, Enum):
    PRODUCING = "producing"
    CONSUMING = "consuming"


@dataclass
class ServerContext:
    """Collaborators the server hands to a producing context."""

    data_storage: DataStore | None = None
    internal_http: InternalHttp | None = None


class RenderContext:
    def __init__(self, mode: RenderMode, store: DataStore | None = None) -> None:
        self.mode = mode
        self._store = store if store is not None else DataStore()
        self._server_ctx: ServerContext | None = None
        self._counter = CallCounter()
        self.strategy = ProducingStrategy() if mode is RenderMode.PRODUCING else ConsumingStrategy()
        self.api_client: httpx.AsyncClient | None = None

    @property
    def producing(self) -> bool:
        return self.mode is RenderMode.PRODUCING

    @property
    def ssr_data(self) -> DataStore:
        return self._store

    @property
    def server_ctx(self) -> ServerContext | None:
        return self._server_ctx

    def provide(self, server_ctx: ServerContext) -> None:
        """Attach server collaborators. No effect on a consuming context."""
        if not self.producing:
            return
        self._server_ctx = server_ctx
        if server_ctx.data_storage is not None:
            self._store = server_ctx.data_storage

    def next_call_index(self, path_hash: int) -> int:
        return self._counter.next(path_hash)

    @contextmanager
    def activate(self) -> Iterator[RenderContext]:
        token = _current_context.set(self)
        try:
            yield self
        finally:
            _current_context.reset(token)

    async def aclose(self) -> None:
        if self.api_client is not None:
            await self.api_client.aclose()

    def __repr__(self) -> str:
        return f"RenderContext({self.mode.value}, entries={len(self._store)})"


_current_context: contextvars.ContextVar[RenderContext | None] = contextvars.ContextVar(
    "hydrafx_render_context", default=None
)


def current_render_context() -> RenderContext | None:
    return _current_context.get()


def use_render_context() -> RenderContext:
    ctx = _current_context.get()
    if ctx is None:
        raise UsageError("use_render_context() called with no active render context")
    return ctx


def create_producing_context() -> RenderContext:
    return RenderContext(RenderMode.PRODUCING)


def create_consuming_context(
    document: str | None = None,
    *,
    store: DataStore | None = None,
    settings: SsrSettings | None = None,
) -> RenderContext:
    """Client context seeded from the document's embedded store, if any."""
    if store is None and document is not None:
        settings = settings or get_settings()
        store, _ = extract_ssr_data(document, settings.data_element_id)
    return RenderContext(RenderMode.CONSUMING, store)
