"""hydrafx: server-rendered data that component trees pick up again on the client."""

from importlib.metadata import version as _version

__version__ = _version("hydrafx")

from hydrafx._tracking import batch
from hydrafx.ref import Ref, Effect, autorun, reaction
from hydrafx.ids import hash_fast, path_hash, cell_id, use_ssr_id
from hydrafx.store import DataStore, create_store, serialize_store, deserialize_store
from hydrafx.component import Component, Node, h, on_mounted, on_server_prefetch
from hydrafx.context import (
    RenderContext,
    RenderMode,
    ServerContext,
    create_consuming_context,
    create_producing_context,
    use_render_context,
)
from hydrafx.cell import AsyncData, AsyncDataOptions, use_async_data
from hydrafx.proxy import ProxyResponse, ProxyTransport, make_internal_http
from hydrafx.api import install_api_client, use_api, use_api_client
from hydrafx.document import embed_document, extract_ssr_data, is_hydrating
from hydrafx.config import SsrSettings, get_settings
from hydrafx.errors import HydrafxError, SsrDataError, UsageError
from hydrafx.server import PageTemplate, create_app, render_page
from hydrafx.client import Hydration, load_page
# textual is opt-in: import hydrafx.textual directly

__all__ = [
    "batch",
    "Ref",
    "Effect",
    "autorun",
    "reaction",
    "hash_fast",
    "path_hash",
    "cell_id",
    "use_ssr_id",
    "DataStore",
    "create_store",
    "serialize_store",
    "deserialize_store",
    "Component",
    "Node",
    "h",
    "on_mounted",
    "on_server_prefetch",
    "RenderContext",
    "RenderMode",
    "ServerContext",
    "create_consuming_context",
    "create_producing_context",
    "use_render_context",
    "AsyncData",
    "AsyncDataOptions",
    "use_async_data",
    "ProxyResponse",
    "ProxyTransport",
    "make_internal_http",
    "install_api_client",
    "use_api",
    "use_api_client",
    "embed_document",
    "extract_ssr_data",
    "is_hydrating",
    "SsrSettings",
    "get_settings",
    "HydrafxError",
    "SsrDataError",
    "UsageError",
    "PageTemplate",
    "create_app",
    "render_page",
    "Hydration",
    "load_page",
]
